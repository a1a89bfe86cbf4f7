# main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.status import HTTP_404_NOT_FOUND

from errors import TaskError
from ids import get_id_generator
from logging_setup import setup_logging
from routers import legacy, tasks
from settings import Settings, load_settings
from storage import TaskStore, write_atomic, write_direct

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> TaskStore:
    return TaskStore(
        settings.tasks_file,
        template_file=settings.template_file,
        id_generator=get_id_generator(settings.id_scheme),
        writer=write_atomic if settings.atomic_writes else write_direct,
        serialize_writes=settings.serialize_writes,
        protect_id=settings.protect_id,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()

    # --- App Lifecycle (Lifespan) ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Application starting up (tasks file: %s, serialize writes: %s, atomic writes: %s)",
            settings.tasks_file, settings.serialize_writes, settings.atomic_writes,
        )
        yield
        logger.info("Application shutting down...")

    # --- FastAPI App Initialization ---
    app = FastAPI(
        title="Task Tracker",
        description="Create, view, update and delete tasks stored in a JSON file.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = build_store(settings)

    # --- Error Mapping ---
    @app.exception_handler(TaskError)
    async def handle_task_error(request: Request, exc: TaskError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error_code)
        else:
            logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.error_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # --- Mount Static Files ---
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")
    app.mount("/static", StaticFiles(directory=settings.static_dir, check_dir=False), name="static")

    # --- Include API Routers ---
    app.include_router(tasks.router)
    app.include_router(legacy.router)

    # --- Root Endpoint ---
    @app.get("/", include_in_schema=False)
    async def read_root():
        """Serves the main index.html file."""
        index = settings.static_dir / "index.html"
        if not index.is_file():
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="UI not found")
        return FileResponse(index)

    return app


# --- Main Entry Point ---
if __name__ == "__main__":
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
