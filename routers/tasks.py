# routers/tasks.py
import logging
import re
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.status import HTTP_201_CREATED

from dependencies import get_settings, get_store
from errors import ClientError, TaskError
from models import parse_task_create
from settings import Settings
from storage import TaskStore
from uploads import remove_upload, save_upload

logger = logging.getLogger(__name__)

# --- Router Setup ---
router = APIRouter(
    prefix="/tasks",
    tags=["Task Management"],
)

# --- Constants ---
NUMERIC_ID = re.compile(r"[0-9]+")
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
IMAGE_FIELD = "image"


# --- Helpers ---

def _require_task_id(task_id: str | None, message: str) -> str:
    if not task_id or not task_id.strip():
        raise ClientError(message, "MISSING_TASK_ID")
    return task_id


async def _read_json_object(request: Request) -> Dict[str, Any]:
    """Parses the body as a JSON object. An empty body counts as {}."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise ClientError("Request body must be valid JSON.", "INVALID_REQUEST_BODY") from None
    if not isinstance(body, dict):
        raise ClientError("Request body must be a JSON object.", "INVALID_REQUEST_BODY")
    return body


# --- Endpoints ---
# Store calls run in the threadpool, so overlapping requests really do overlap
# on the tasks file. See TaskStore for what that means for concurrent writers.

@router.get("/")
async def list_tasks(store: TaskStore = Depends(get_store)):
    """Get the list of all tasks. An uninitialized store yields []."""
    return await run_in_threadpool(store.load_all)


@router.post("/", status_code=HTTP_201_CREATED)
async def create_task(
    request: Request,
    store: TaskStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Creates a task from a JSON body or a form with an optional `image` file
    and returns the full collection, including the new task.
    """
    content_type = request.headers.get("content-type", "")
    upload = None
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data = {k: v for k, v in form.items() if not isinstance(v, UploadFile)}
        upload = form.get(IMAGE_FIELD)
    else:
        data = await _read_json_object(request)

    payload = parse_task_create(data)
    image_url = await save_upload(upload, settings.upload_dir)

    try:
        tasks = await run_in_threadpool(store.insert, payload.to_record(image_url))
    except TaskError:
        remove_upload(image_url, settings.upload_dir)
        raise
    logger.info("Created task '%s' (%d tasks total)", payload.title, len(tasks))
    return tasks


@router.api_route("/", methods=["PUT", "DELETE"], include_in_schema=False)
async def missing_task_id(request: Request):
    action = "update" if request.method == "PUT" else "deletion"
    raise ClientError(f"Task ID is required for {action}.", "MISSING_TASK_ID")


@router.put("/{task_id}")
async def update_task(task_id: str, request: Request, store: TaskStore = Depends(get_store)):
    """Shallow-merges the JSON body into the task and returns the merged task."""
    task_id = _require_task_id(task_id, "Task ID is required for update.")
    patch = await _read_json_object(request)
    return await run_in_threadpool(store.update_by_id, task_id, patch)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    store: TaskStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    task_id = _require_task_id(task_id, "Task ID is required for deletion.")
    if settings.strict_numeric_ids and not NUMERIC_ID.fullmatch(task_id):
        raise ClientError(
            "Invalid task ID format. Task ID must be numeric.",
            "INVALID_TASK_ID_FORMAT",
            providedId=task_id,
        )

    result = await run_in_threadpool(store.delete_by_id, task_id)
    remove_upload(result.deleted_task.get("imageUrl"), settings.upload_dir)

    return {
        "message": "Task deleted successfully.",
        "deletedTask": result.deleted_task,
        "remainingTasksCount": result.remaining_count,
    }
