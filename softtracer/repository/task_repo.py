from __future__ import annotations

from sqlite3 import Connection


def ensure_schema(conn: Connection):
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS tasks (
            projectId INTEGER NOT NULL,
            taskId INTEGER NOT NULL,
            requirementId INTEGER NOT NULL,
            name TEXT NOT NULL,
            stage INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (projectId, taskId)
        )
        """
    )


def next_task_id(conn: Connection, project_id: int) -> int:
    row = conn.execute(
        "SELECT COALESCE(MAX(taskId) + 1, 1) AS next_id FROM tasks WHERE projectId=?",
        (project_id,),
    ).fetchone()
    return int(row["next_id"])


def insert_task(conn: Connection, project_id: int, requirement_id: int, name: str, stage: int) -> int:
    task_id = next_task_id(conn, project_id)
    conn.execute(
        "INSERT INTO tasks(projectId, taskId, requirementId, name, stage) VALUES(?,?,?,?,?)",
        (project_id, task_id, requirement_id, name, int(stage)),
    )
    return task_id


def get_one(conn: Connection, project_id: int, task_id: int):
    return conn.execute(
        "SELECT projectId, taskId, requirementId, name, stage FROM tasks WHERE projectId=? AND taskId=?",
        (project_id, task_id),
    ).fetchone()


def set_stage(conn: Connection, project_id: int, task_id: int, stage: int) -> int:
    cur = conn.execute(
        "UPDATE tasks SET stage=? WHERE projectId=? AND taskId=?",
        (int(stage), project_id, task_id),
    )
    return cur.rowcount


def delete_task(conn: Connection, project_id: int, task_id: int) -> int:
    cur = conn.execute("DELETE FROM tasks WHERE projectId=? AND taskId=?", (project_id, task_id))
    return cur.rowcount
