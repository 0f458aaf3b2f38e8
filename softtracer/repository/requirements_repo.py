"""
Requirements data access.

Functions take an open connection and never commit; the caller owns the
transaction. Rows are mapped to `Requirement` entities and rebuilt into a
two-level parent/child tree on load.
"""
from __future__ import annotations

from dataclasses import replace
from sqlite3 import Connection, Row
from typing import Optional

from ..domain.requirement import (
    CreateRequirementsCommand,
    Requirement,
    RequirementTask,
    TaskStage,
    attach_children,
    map_command,
    rollup_completion,
    to_bool,
)


def ensure_schema(conn: Connection):
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS requirements (
            projectId INTEGER NOT NULL,
            requirementId INTEGER NOT NULL,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            completed INTEGER NOT NULL DEFAULT 0,
            parentId INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (projectId, requirementId)
        )
        """
    )


# ===== Create =====

def create(conn: Connection, project_id: int, commands: list[CreateRequirementsCommand]) -> list[Requirement]:
    """
    Insert a batch of requirements with ids starting at find_next_id().
    Only top-level items and their immediate children are written, and only
    those are returned.
    """
    written: list[Requirement] = []
    for requirement in map_command(commands, find_next_id(conn, project_id)):
        insert(conn, project_id, requirement)
        children = [replace(child, children=[]) for child in requirement.children]
        for child in children:
            insert(conn, project_id, child)
        written.append(replace(requirement, children=children))
    return written


def insert(conn: Connection, project_id: int, requirement: Requirement) -> None:
    conn.execute(
        "INSERT INTO requirements(projectId, requirementId, name, description, completed, parentId) "
        "VALUES(?,?,?,?,?,?)",
        (
            project_id,
            requirement.id,
            requirement.name,
            requirement.description,
            1 if requirement.completed else 0,
            requirement.parent_id,
        ),
    )


# ===== Delete =====

def delete(conn: Connection, project_id: int, requirement_id: int) -> int:
    """Delete one requirement and the rows directly under it. Returns rows removed."""
    cur = conn.execute(
        "DELETE FROM requirements WHERE projectId=? AND (requirementId=? OR parentId=?)",
        (project_id, requirement_id, requirement_id),
    )
    return cur.rowcount


def delete_project(conn: Connection, project_id: int) -> int:
    cur = conn.execute("DELETE FROM requirements WHERE projectId=?", (project_id,))
    return cur.rowcount


# ===== Update =====

def update(conn: Connection, project_id: int, requirement: Requirement) -> None:
    conn.execute(
        "UPDATE requirements SET name=?, description=?, completed=?, parentId=? "
        "WHERE projectId=? AND requirementId=?",
        (
            requirement.name,
            requirement.description,
            1 if requirement.completed else 0,
            requirement.parent_id,
            project_id,
            requirement.id,
        ),
    )


def update_many(conn: Connection, project_id: int, requirements: list[Requirement]) -> None:
    for requirement in requirements:
        update(conn, project_id, requirement)
        if requirement.children:
            update_many(conn, project_id, requirement.children)


# ===== Find =====

def find(conn: Connection, project_id: int) -> list[Requirement]:
    """Root requirements of a project with their children attached."""
    return [r for r in _load_all(conn, project_id) if r.parent_id == 0]


def find_one(conn: Connection, project_id: int, requirement_id: int) -> Optional[Requirement]:
    for r in _load_all(conn, project_id):
        if r.id == requirement_id:
            return r
    return None


def find_next_id(conn: Connection, project_id: int) -> int:
    row = conn.execute(
        "SELECT COALESCE(MAX(requirementId) + 1, 1) AS next_id FROM requirements WHERE projectId=?",
        (project_id,),
    ).fetchone()
    return int(row["next_id"])


def _load_all(conn: Connection, project_id: int) -> list[Requirement]:
    rows = conn.execute(
        "SELECT requirementId, parentId, name, description, completed "
        "FROM requirements WHERE projectId=? ORDER BY requirementId",
        (project_id,),
    ).fetchall()
    every_requirement = [_to_requirement(r) for r in rows]
    if not every_requirement:
        return every_requirement

    counts = _task_counts(conn, project_id)
    tasks = _tasks_by_requirement(conn, project_id)
    for requirement in every_requirement:
        total, done = counts.get(requirement.id, (0, 0))
        rollup_completion(requirement, total, done)
        requirement.related_tasks = tasks.get(requirement.id, [])

    attach_children(every_requirement)
    return every_requirement


def _task_counts(conn: Connection, project_id: int) -> dict[int, tuple[int, int]]:
    rows = conn.execute(
        "SELECT requirementId, COUNT(1) AS total_tasks, "
        "SUM(CASE WHEN stage=? THEN 1 ELSE 0 END) AS done_tasks "
        "FROM tasks WHERE projectId=? GROUP BY requirementId",
        (int(TaskStage.DONE), project_id),
    ).fetchall()
    return {
        int(r["requirementId"]): (int(r["total_tasks"]), int(r["done_tasks"] or 0))
        for r in rows
    }


def _tasks_by_requirement(conn: Connection, project_id: int) -> dict[int, list[RequirementTask]]:
    rows = conn.execute(
        "SELECT requirementId, taskId, name, stage FROM tasks WHERE projectId=? ORDER BY taskId",
        (project_id,),
    ).fetchall()
    out: dict[int, list[RequirementTask]] = {}
    for r in rows:
        task = RequirementTask(
            id=int(r["taskId"]),
            name=r["name"] or "",
            stage=TaskStage(int(r["stage"])),
        )
        out.setdefault(int(r["requirementId"]), []).append(task)
    return out


def _to_requirement(r: Row) -> Requirement:
    return Requirement(
        id=int(r["requirementId"]),
        parent_id=int(r["parentId"]),
        name=r["name"] or "",
        description=r["description"] or "",
        completed=to_bool(r["completed"]),
    )
