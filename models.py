# models.py
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from errors import ClientError

TaskStatus = Literal["To Do", "In Progress", "Completed"]
TaskPriority = Literal["Low", "Medium", "High"]

DEFAULT_STATUS = "To Do"
DEFAULT_PRIORITY = "Medium"


class TaskCreate(BaseModel):
    """Payload accepted by the create endpoint (JSON body or form fields)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    description: Optional[str] = ""
    status: TaskStatus = DEFAULT_STATUS
    priority: TaskPriority = DEFAULT_PRIORITY
    due_date: str = Field(alias="dueDate")

    @field_validator("status", "priority", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info):
        # HTML selects left unset arrive as empty strings
        if value is None or value == "":
            return DEFAULT_STATUS if info.field_name == "status" else DEFAULT_PRIORITY
        return value

    @field_validator("title", "due_date")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    def to_record(self, image_url: Optional[str] = None) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "dueDate": self.due_date,
            "imageUrl": image_url,
        }


def parse_task_create(data: Dict[str, Any]) -> TaskCreate:
    try:
        return TaskCreate.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise ClientError(f"Invalid task data. {problems}", "VALIDATION_ERROR") from e
