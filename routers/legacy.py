# routers/legacy.py
from fastapi import APIRouter
from starlette.status import HTTP_201_CREATED

from routers import tasks

# Paths the original browser scripts call. Same handlers, same semantics.
router = APIRouter(tags=["Legacy Routes"])

router.add_api_route("/view-tasks", tasks.list_tasks, methods=["GET"])
router.add_api_route("/create-task", tasks.create_task, methods=["POST"], status_code=HTTP_201_CREATED)
router.add_api_route("/update-task/{task_id}", tasks.update_task, methods=["PUT"])
router.add_api_route("/delete-task/{task_id}", tasks.delete_task, methods=["DELETE"])
