from __future__ import annotations

from fastapi import APIRouter, HTTPException, Body
from pydantic import BaseModel

from ..logs import LogContext
from ..services.task_svc import create_task, update_task_stage, remove_task

router = APIRouter()


class TaskCreate(BaseModel):
    requirement_id: int
    name: str
    stage: int = 0


@router.post("/api/projects/{project_id}/tasks", status_code=201)
def api_task_create(project_id: int, body: TaskCreate):
    log = LogContext("CREATE_TASK", project_id)
    log.set_payload(body.model_dump())
    try:
        task_id = create_task(project_id, body.requirement_id, body.name, body.stage, log)
        log.write("OK")
        return {"message": "ok", "task_id": task_id}
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="internal error")


@router.post("/api/projects/{project_id}/tasks/{task_id}/stage")
def api_task_stage(project_id: int, task_id: int, stage: int = Body(..., embed=True)):
    log = LogContext("UPDATE_TASK_STAGE", project_id)
    log.set_payload({"task_id": task_id, "stage": stage})
    try:
        task = update_task_stage(project_id, task_id, stage, log)
        log.write("OK")
        return {"message": "ok", "task": task}
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="internal error")


@router.delete("/api/projects/{project_id}/tasks/{task_id}")
def api_task_delete(project_id: int, task_id: int):
    log = LogContext("DELETE_TASK", project_id)
    try:
        remove_task(project_id, task_id, log)
        log.write("OK")
        return {"message": "ok"}
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="internal error")
