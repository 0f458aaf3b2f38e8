from __future__ import annotations

from ..db import get_conn
from ..logs import LogContext
from ..domain.requirement import TaskStage
from ..repository import requirements_repo, task_repo


def ensure_task_schema():
    with get_conn() as conn:
        task_repo.ensure_schema(conn)
        conn.commit()


def create_task(project_id: int, requirement_id: int, name: str, stage: int, log: LogContext) -> int:
    stage = TaskStage(int(stage))
    with get_conn() as conn:
        if requirements_repo.find_one(conn, project_id, requirement_id) is None:
            raise ValueError("requirement_not_found")
        task_id = task_repo.insert_task(conn, project_id, requirement_id, name, stage)
        conn.commit()
    log.set_entity("TASK", f"{project_id}/{task_id}")
    log.set_after({"task_id": task_id, "requirement_id": requirement_id, "name": name, "stage": int(stage)})
    return task_id


def update_task_stage(project_id: int, task_id: int, stage: int, log: LogContext) -> dict:
    stage = TaskStage(int(stage))
    with get_conn() as conn:
        before = task_repo.get_one(conn, project_id, task_id)
        if before is None:
            raise ValueError("task_not_found")
        task_repo.set_stage(conn, project_id, task_id, stage)
        conn.commit()
        after = task_repo.get_one(conn, project_id, task_id)
    log.set_entity("TASK", f"{project_id}/{task_id}")
    log.set_before(dict(before))
    log.set_after(dict(after))
    return dict(after)


def remove_task(project_id: int, task_id: int, log: LogContext):
    with get_conn() as conn:
        if task_repo.delete_task(conn, project_id, task_id) == 0:
            raise ValueError("task_not_found")
        conn.commit()
    log.set_entity("TASK", f"{project_id}/{task_id}")
