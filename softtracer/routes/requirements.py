from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..logs import LogContext
from ..services.requirements_svc import (
    create_requirements,
    delete_project_requirements,
    delete_requirement,
    get_requirement,
    list_requirements,
    update_requirements,
)

router = APIRouter()


class RequirementCreate(BaseModel):
    name: str
    description: str = ""
    completed: bool = False
    parent_id: int = 0
    children: Optional[List["RequirementCreate"]] = None


class RequirementUpdate(BaseModel):
    id: int
    name: str
    description: str = ""
    completed: bool = False
    parent_id: int = 0
    children: List["RequirementUpdate"] = []


RequirementCreate.model_rebuild()
RequirementUpdate.model_rebuild()


@router.get("/api/projects/{project_id}/requirements")
def api_requirements_list(project_id: int):
    return {"items": list_requirements(project_id)}


@router.get("/api/projects/{project_id}/requirements/{requirement_id}")
def api_requirement_get(project_id: int, requirement_id: int):
    item = get_requirement(project_id, requirement_id)
    if item is None:
        raise HTTPException(status_code=404, detail="requirement_not_found")
    return item


@router.post("/api/projects/{project_id}/requirements", status_code=201)
def api_requirements_create(project_id: int, body: List[RequirementCreate]):
    log = LogContext("CREATE_REQUIREMENTS", project_id)
    payload = [b.model_dump() for b in body]
    log.set_payload(payload)
    try:
        items = create_requirements(project_id, payload, log)
        log.write("OK")
        return {"message": "ok", "items": items}
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="internal error")


@router.put("/api/projects/{project_id}/requirements")
def api_requirements_update(project_id: int, body: List[RequirementUpdate]):
    log = LogContext("UPDATE_REQUIREMENTS", project_id)
    payload = [b.model_dump() for b in body]
    log.set_payload(payload)
    try:
        n = update_requirements(project_id, payload, log)
        log.write("OK")
        return {"message": "ok", "updated": n}
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="internal error")


@router.delete("/api/projects/{project_id}/requirements/{requirement_id}")
def api_requirement_delete(project_id: int, requirement_id: int):
    log = LogContext("DELETE_REQUIREMENT", project_id)
    try:
        removed = delete_requirement(project_id, requirement_id, log)
        log.write("OK")
        return {"message": "ok", "deleted": removed}
    except ValueError as e:
        log.write("ERROR", str(e))
        status = 404 if str(e) == "requirement_not_found" else 400
        raise HTTPException(status_code=status, detail=str(e))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="internal error")


@router.delete("/api/projects/{project_id}/requirements")
def api_requirements_delete_all(project_id: int):
    log = LogContext("DELETE_PROJECT_REQUIREMENTS", project_id)
    try:
        removed = delete_project_requirements(project_id, log)
        log.write("OK")
        return {"message": "ok", "deleted": removed}
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="internal error")
