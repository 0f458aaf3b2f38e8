"""
Operation log: one row per requirement/task command, kept in `operation_log`.
"""
from __future__ import annotations

import datetime as dt
import json
import logging
import time
import uuid

from .db import get_conn

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  action TEXT NOT NULL,
  project_id INTEGER,
  entity_type TEXT,
  entity_id TEXT,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_project ON operation_log(project_id, action);
"""


def ensure_log_schema():
    with get_conn() as conn:
        conn.executescript(DDL)
        conn.commit()


def _json(obj) -> str | None:
    return None if obj is None else json.dumps(obj, ensure_ascii=False)


class LogContext:
    """Collects what one command touched; `write()` persists it once the outcome is known."""

    def __init__(self, action: str, project_id: int | None = None):
        self.action = action
        self.project_id = project_id
        self.request_id = uuid.uuid4().hex
        self.start = time.perf_counter()
        self.entity_type = None
        self.entity_id = None
        self.before = None
        self.after = None
        self.payload = None

    def set_entity(self, etype: str, eid: str):
        self.entity_type = etype
        self.entity_id = eid

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def write(self, result: str = "OK", err: str | None = None):
        if result != "OK":
            logger.warning("%s project=%s %s/%s failed: %s",
                           self.action, self.project_id, self.entity_type, self.entity_id, err)
        with get_conn() as conn:
            conn.execute(
                "INSERT INTO operation_log(ts, action, project_id, entity_type, entity_id, request_id, "
                "before_json, after_json, payload_json, result, err_msg, latency_ms) "
                "VALUES(?,?,?,?,?,?,?,?,?,?,?,?)",
                (
                    dt.datetime.now(dt.timezone.utc).isoformat(),
                    self.action,
                    self.project_id,
                    self.entity_type,
                    self.entity_id,
                    self.request_id,
                    _json(self.before),
                    _json(self.after),
                    _json(self.payload),
                    result,
                    err,
                    int((time.perf_counter() - self.start) * 1000),
                ),
            )
            conn.commit()


def search_logs(project_id: int | None, action: str | None, result: str | None, page: int, size: int):
    """Newest first. Returns (total, items)."""
    where = []
    params: list[object] = []
    if project_id is not None:
        where.append("project_id = ?")
        params.append(project_id)
    if action:
        where.append("action = ?")
        params.append(action.upper())
    if result:
        where.append("result = ?")
        params.append(result.upper())
    wh = " WHERE " + " AND ".join(where) if where else ""
    with get_conn() as conn:
        total = conn.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"]
        rows = conn.execute(
            f"SELECT * FROM operation_log{wh} ORDER BY id DESC LIMIT ? OFFSET ?",
            [*params, size, (page - 1) * size],
        ).fetchall()
    return total, [dict(r) for r in rows]
