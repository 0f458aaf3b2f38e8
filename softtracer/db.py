from __future__ import annotations

# softtracer/db.py
import sqlite3
from contextlib import contextmanager
from typing import Iterator
import os
import yaml

# DB path resolution order:
# 1) SOFTTRACER_DB_PATH environment variable
# 2) test_db_path from config.yaml when running under tests
# 3) db_path from config.yaml
# 4) softtracer.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "softtracer.db")


def _read_config_yaml() -> dict:
    cfg_path = os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    out = {}
    for k in ("db_path", "test_db_path"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    return out


def get_db_path() -> str:
    env_path = os.environ.get("SOFTTRACER_DB_PATH")
    cfg = _read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    if not os.path.isabs(path):
        path = os.path.join(_PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return path


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection, preferring an explicit db_path over get_db_path().
    Foreign keys are on and rows come back as sqlite3.Row.
    """
    path = db_path or get_db_path()
    conn = sqlite3.connect(path, check_same_thread=False)
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()
