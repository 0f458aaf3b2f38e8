from __future__ import annotations

import logging
from typing import Any

from ..db import get_conn
from ..logs import LogContext
from ..domain.requirement import CreateRequirementsCommand, Requirement
from ..repository import requirements_repo

logger = logging.getLogger(__name__)


def ensure_requirements_schema():
    with get_conn() as conn:
        requirements_repo.ensure_schema(conn)
        conn.commit()


def command_from_dict(data: dict) -> CreateRequirementsCommand:
    children = data.get("children")
    return CreateRequirementsCommand(
        name=data["name"],
        description=data.get("description") or "",
        completed=bool(data.get("completed", False)),
        parent_id=int(data.get("parent_id") or 0),
        children=[command_from_dict(c) for c in children] if children is not None else None,
    )


def requirement_from_dict(data: dict) -> Requirement:
    return Requirement(
        id=int(data["id"]),
        name=data["name"],
        description=data.get("description") or "",
        completed=bool(data.get("completed", False)),
        parent_id=int(data.get("parent_id") or 0),
        children=[requirement_from_dict(c) for c in data.get("children") or []],
    )


def requirement_to_dict(req: Requirement, _seen: frozenset[int] = frozenset()) -> dict[str, Any]:
    # parentId rows can form a loop (1 -> 2 -> 1); each id is emitted once per path
    seen = _seen | {req.id}
    return {
        "id": req.id,
        "name": req.name,
        "description": req.description,
        "completed": req.completed,
        "parent_id": req.parent_id,
        "children": [requirement_to_dict(c, seen) for c in req.children if c.id not in seen],
        "related_tasks": [
            {"id": t.id, "name": t.name, "stage": int(t.stage), "stage_name": t.stage.name}
            for t in req.related_tasks
        ],
    }


# ===== Queries =====

def list_requirements(project_id: int) -> list[dict]:
    with get_conn() as conn:
        roots = requirements_repo.find(conn, project_id)
    return [requirement_to_dict(r) for r in roots]


def get_requirement(project_id: int, requirement_id: int) -> dict | None:
    with get_conn() as conn:
        req = requirements_repo.find_one(conn, project_id, requirement_id)
    return requirement_to_dict(req) if req else None


# ===== Commands =====

def create_requirements(project_id: int, commands: list[dict], log: LogContext) -> list[dict]:
    cmds = [command_from_dict(c) for c in commands]
    with get_conn() as conn:
        try:
            created = requirements_repo.create(conn, project_id, cmds)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
    ids = [r.id for r in created]
    logger.info("project %s: created requirements %s", project_id, ids)
    log.set_entity("PROJECT", str(project_id))
    log.set_after({"created_ids": ids})
    return [requirement_to_dict(r) for r in created]


def update_requirements(project_id: int, requirements: list[dict], log: LogContext) -> int:
    """Update every given requirement and its children. Returns how many items were written."""
    reqs = [requirement_from_dict(r) for r in requirements]
    with get_conn() as conn:
        before = [requirement_to_dict(r) for r in requirements_repo.find(conn, project_id)]
        try:
            requirements_repo.update_many(conn, project_id, reqs)
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _count(items: list[Requirement]) -> int:
        return sum(1 + _count(r.children) for r in items)

    n = _count(reqs)
    log.set_entity("PROJECT", str(project_id))
    log.set_before(before)
    log.set_after(requirements)
    return n


def delete_requirement(project_id: int, requirement_id: int, log: LogContext) -> int:
    with get_conn() as conn:
        # the parent row may already be gone; its direct children are still removed
        before = requirements_repo.find_one(conn, project_id, requirement_id)
        removed = requirements_repo.delete(conn, project_id, requirement_id)
        if removed == 0:
            raise ValueError("requirement_not_found")
        conn.commit()
    logger.info("project %s: deleted requirement %s (%s rows)", project_id, requirement_id, removed)
    log.set_entity("REQUIREMENT", f"{project_id}/{requirement_id}")
    log.set_before(requirement_to_dict(before) if before else None)
    log.set_after({"deleted_rows": removed})
    return removed


def delete_project_requirements(project_id: int, log: LogContext) -> int:
    with get_conn() as conn:
        removed = requirements_repo.delete_project(conn, project_id)
        conn.commit()
    log.set_entity("PROJECT", str(project_id))
    log.set_after({"deleted_rows": removed})
    return removed
