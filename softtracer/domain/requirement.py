from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class TaskStage(IntEnum):
    BACKLOG = 0
    TODO = 1
    IN_PROGRESS = 2
    TESTING = 3
    DONE = 4


@dataclass
class RequirementTask:
    id: int
    name: str
    stage: TaskStage


@dataclass
class Requirement:
    id: int
    name: str
    description: str = ""
    completed: bool = False
    parent_id: int = 0  # 0 = root
    children: list[Requirement] = field(default_factory=list)
    related_tasks: list[RequirementTask] = field(default_factory=list)


@dataclass
class CreateRequirementsCommand:
    name: str
    description: str = ""
    completed: bool = False
    parent_id: int = 0
    children: list[CreateRequirementsCommand] | None = None


def to_bool(value) -> bool:
    """Coerce a stored `completed` value (0/1 or 'true'/'false') to bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    s = str(value).strip().lower()
    if s in ("1", "true"):
        return True
    if s in ("0", "false"):
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def rollup_completion(requirement: Requirement, total_tasks: int, done_tasks: int) -> None:
    """A requirement with tasks is completed iff all of them are DONE; without tasks it keeps its stored flag."""
    if total_tasks > 0:
        requirement.completed = total_tasks == done_tasks


def attach_children(every_requirement: list[Requirement]) -> None:
    """
    Link children into their parents' `children` lists.

    Requirements are indexed by id in one pass, then each child is appended to
    its parent in a second pass. A completed parent forces its direct children
    to completed. Children whose parent is not in the list, or that name
    themselves as parent, stay unattached.
    """
    by_id = {r.id: r for r in every_requirement}
    for child in every_requirement:
        if child.parent_id <= 0 or child.parent_id == child.id:
            continue
        parent = by_id.get(child.parent_id)
        if parent is None:
            continue
        parent.children.append(child)
        if parent.completed:
            child.completed = True


def map_command(commands: list[CreateRequirementsCommand], start_id: int) -> list[Requirement]:
    """
    Turn a command tree into requirement entities with sequential ids.

    Ids are handed out in pre-order starting at `start_id`: a parent gets its
    id before its children, and each child's parent_id points at the new id.
    Top-level items keep the parent_id given in the command.
    """
    next_id = start_id

    def _map(cmd: CreateRequirementsCommand, parent_id: int) -> Requirement:
        nonlocal next_id
        req = Requirement(
            id=next_id,
            name=cmd.name,
            description=cmd.description or "",
            completed=bool(cmd.completed),
            parent_id=parent_id,
        )
        next_id += 1
        for child in cmd.children or []:
            req.children.append(_map(child, req.id))
        return req

    return [_map(cmd, int(cmd.parent_id or 0)) for cmd in commands]
