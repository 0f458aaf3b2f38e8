import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "softtracer_test.db"
    # Point the app at this temp DB
    os.environ["SOFTTRACER_DB_PATH"] = str(path)
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture()
def client(tmp_db_path):
    from softtracer.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Only ever wipe the temp DB
    assert os.environ.get("SOFTTRACER_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in ("requirements", "tasks", "operation_log"):
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
