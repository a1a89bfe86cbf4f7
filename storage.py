# storage.py
import contextlib
import errno
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from errors import CorruptStore, NotFound, StorageUnavailable
from ids import IdGenerator, timestamp_id

logger = logging.getLogger(__name__)

Task = Dict[str, Any]
Writer = Callable[[Path, List[Task]], None]


class DeleteResult(NamedTuple):
    deleted_task: Task
    remaining_count: int


def _dumps(tasks: List[Task]) -> str:
    return json.dumps(tasks, indent=2, ensure_ascii=False)


def write_direct(path: Path, tasks: List[Task]) -> None:
    """Overwrites the file in place. A crash mid-write can leave it truncated."""
    data = _dumps(tasks)
    with open(path, "w", encoding="utf-8") as f:
        f.write(data)


def write_atomic(path: Path, tasks: List[Task]) -> None:
    """Writes to a temp file next to `path`, then renames it over the original."""
    data = _dumps(tasks)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_path)
        raise


def parse_collection(text: str) -> List[Task]:
    try:
        tasks = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptStore(
            "Database file is corrupted. Unable to parse tasks data.",
            "INVALID_JSON",
            details=str(e),
        ) from e

    if not isinstance(tasks, list):
        raise CorruptStore(
            "Invalid database structure. Expected an array of tasks.",
            "INVALID_DATABASE_STRUCTURE",
        )
    if any(not isinstance(task, dict) for task in tasks):
        raise CorruptStore(
            "Invalid database structure. Every task must be a JSON object.",
            "INVALID_DATABASE_STRUCTURE",
        )
    return tasks


def read_collection(path: Path) -> Optional[List[Task]]:
    """
    Reads and validates a JSON array of tasks.
    Returns None if the file does not exist.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        return None
    except PermissionError as e:
        logger.error("Permission denied reading %s: %s", path, e)
        raise StorageUnavailable(
            "Permission denied accessing tasks database.", "FILE_ACCESS_DENIED"
        ) from e
    except UnicodeDecodeError as e:
        raise CorruptStore(
            "Database file is corrupted. Unable to decode tasks data.",
            "INVALID_JSON",
            details=str(e),
        ) from e
    except OSError as e:
        logger.error("Error reading %s: %s", path, e)
        raise StorageUnavailable(
            "Error accessing tasks database.", "FILE_READ_ERROR", details=str(e)
        ) from e

    return parse_collection(text)


class TaskStore:
    """
    Whole-file JSON task store.

    Every operation loads the full collection, mutates it in memory and
    rewrites the full collection. Nothing is cached between calls.

    Concurrent writers are NOT serialized unless `serialize_writes` is set:
    two overlapping updates can read the same snapshot, and the later write
    discards the earlier one. Callers that need strict consistency must
    enable `serialize_writes` or funnel writes through a single worker.
    """

    def __init__(
        self,
        tasks_file: str | Path,
        template_file: str | Path | None = None,
        id_generator: IdGenerator = timestamp_id,
        writer: Writer = write_direct,
        serialize_writes: bool = False,
        protect_id: bool = False,
    ):
        self.tasks_file = Path(tasks_file)
        self.template_file = Path(template_file) if template_file else None
        self.protect_id = protect_id
        self._generate_id = id_generator
        self._writer = writer
        self._lock = threading.Lock() if serialize_writes else contextlib.nullcontext()

    # ---- low-level helpers ----

    def _read(self) -> Optional[List[Task]]:
        tasks = read_collection(self.tasks_file)
        if tasks is not None:
            logger.debug("Loaded %d tasks from %s", len(tasks), self.tasks_file)
        return tasks

    def _write(self, tasks: List[Task]) -> None:
        try:
            self.tasks_file.parent.mkdir(parents=True, exist_ok=True)
            self._writer(self.tasks_file, tasks)
        except PermissionError as e:
            logger.error("Permission denied writing %s: %s", self.tasks_file, e)
            raise StorageUnavailable(
                "Permission denied writing to tasks database.", "FILE_WRITE_PERMISSION_DENIED"
            ) from e
        except OSError as e:
            logger.error("Error writing %s: %s", self.tasks_file, e)
            if e.errno == errno.ENOSPC:
                raise StorageUnavailable(
                    "Insufficient disk space to save changes.", "DISK_SPACE_ERROR"
                ) from e
            raise StorageUnavailable(
                "Error saving changes to tasks database.", "FILE_WRITE_ERROR", details=str(e)
            ) from e
        logger.debug("Wrote %d tasks to %s", len(tasks), self.tasks_file)

    def _load_seed(self) -> List[Task]:
        if self.template_file is None:
            return []
        seed = read_collection(self.template_file)
        if seed is None:
            logger.info("Template %s not found, starting from an empty collection", self.template_file)
            return []
        return seed

    def _materialize(self) -> List[Task]:
        seed = self._load_seed()
        self._write(seed)
        logger.info("Initialized %s with %d seed tasks", self.tasks_file, len(seed))
        return seed

    @staticmethod
    def _find_index(tasks: List[Task], task_id: str) -> int:
        return next((i for i, t in enumerate(tasks) if t.get("id") == task_id), -1)

    # ---- public API ----

    def load_all(self) -> List[Task]:
        with self._lock:
            tasks = self._read()
        return tasks if tasks is not None else []

    def materialize(self) -> List[Task]:
        """Creates the tasks file from the template if it does not exist yet."""
        with self._lock:
            tasks = self._read()
            if tasks is None:
                tasks = self._materialize()
        return tasks

    def insert(self, fields: Task) -> List[Task]:
        """
        Appends a new task with a freshly generated id and returns the whole
        updated collection. Any `id` in `fields` is ignored.
        """
        task = {"id": self._generate_id()}
        task.update((k, v) for k, v in fields.items() if k != "id")

        with self._lock:
            tasks = self._read()
            if tasks is None:
                tasks = self._materialize()
            tasks.append(task)
            self._write(tasks)

        logger.info("Inserted task %s (%d tasks total)", task["id"], len(tasks))
        return tasks

    def update_by_id(self, task_id: str, patch: Task) -> Task:
        """
        Shallow-merges `patch` over the task with `task_id`. Fields in the
        patch win, including explicit None; everything else is kept.
        """
        if self.protect_id and "id" in patch:
            patch = {k: v for k, v in patch.items() if k != "id"}

        with self._lock:
            tasks = self._read()
            index = self._find_index(tasks or [], task_id)
            if index == -1:
                raise NotFound(
                    f"Task with ID {task_id} not found.",
                    "TASK_NOT_FOUND" if tasks is not None else "DATABASE_NOT_FOUND",
                    taskId=task_id,
                )

            updated = {**tasks[index], **patch}
            tasks[index] = updated
            self._write(tasks)

        logger.info("Updated task %s (fields: %s)", task_id, ", ".join(sorted(patch)) or "none")
        return updated

    def delete_by_id(self, task_id: str) -> DeleteResult:
        with self._lock:
            tasks = self._read()
            if tasks is None:
                raise NotFound(
                    f"Task with ID {task_id} not found.", "DATABASE_NOT_FOUND", taskId=task_id
                )

            index = self._find_index(tasks, task_id)
            if index == -1:
                raise NotFound(
                    f"Task with ID {task_id} not found.",
                    taskId=task_id,
                    availableTaskCount=len(tasks),
                )

            deleted = tasks.pop(index)
            self._write(tasks)

        logger.info("Deleted task %s (%d remaining)", task_id, len(tasks))
        return DeleteResult(deleted_task=deleted, remaining_count=len(tasks))
