from __future__ import annotations

from fastapi import APIRouter

from ..logs import search_logs

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = 1,
    size: int = 20,
    project_id: int | None = None,
    action: str | None = None,
    result: str | None = None,
):
    total, items = search_logs(project_id, action, result, page, size)
    return {"total": total, "items": items}
