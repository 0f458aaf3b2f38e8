"""
FastAPI app entry point aggregating per-domain routers under softtracer/routes.
Run as `uvicorn softtracer.api:app`.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .logs import ensure_log_schema
from .services.requirements_svc import ensure_requirements_schema
from .services.task_svc import ensure_task_schema

app = FastAPI(title="softtracer-api", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    ensure_log_schema()
    ensure_requirements_schema()
    ensure_task_schema()


# Include routers (split by business domain)
from .routes import base as base_routes
from .routes import requirements as requirements_routes
from .routes import tasks as tasks_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(requirements_routes.router)
app.include_router(tasks_routes.router)
app.include_router(logs_routes.router)
