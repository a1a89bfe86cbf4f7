# settings.py
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from ids import ID_SCHEMES

TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    tasks_file: Path = Path("data/tasks.json")
    template_file: Path | None = Path("data/tasks.template.json")
    upload_dir: Path = Path("uploads")
    static_dir: Path = Path("static")
    id_scheme: str = "timestamp"
    strict_numeric_ids: bool = False
    protect_id: bool = False
    serialize_writes: bool = False
    atomic_writes: bool = False
    host: str = "0.0.0.0"
    port: int = 5050
    log_level: str = "INFO"
    log_dir: Path | None = None


def load_settings(dotenv: bool = True, env_file: str | Path = ".env") -> Settings:
    """
    Builds Settings from the environment. Values in `env_file` (relative to
    the working directory) are loaded first but never override variables
    that are already set.
    """
    if dotenv:
        load_dotenv(env_file)

    id_scheme = os.getenv("TASK_ID_SCHEME", "timestamp").strip().lower()
    if id_scheme not in ID_SCHEMES:
        raise ValueError(f"TASK_ID_SCHEME must be one of {sorted(ID_SCHEMES)}, got '{id_scheme}'")

    port_raw = os.getenv("PORT", "5050")
    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer, got '{port_raw}'") from None

    template = os.getenv("TASKS_TEMPLATE_FILE", "data/tasks.template.json")
    log_dir = os.getenv("LOG_DIR")

    return Settings(
        tasks_file=Path(os.getenv("TASKS_FILE", "data/tasks.json")),
        template_file=Path(template) if template else None,
        upload_dir=Path(os.getenv("UPLOAD_DIR", "uploads")),
        static_dir=Path(os.getenv("STATIC_DIR", "static")),
        id_scheme=id_scheme,
        strict_numeric_ids=_env_flag("TASKS_STRICT_NUMERIC_IDS"),
        protect_id=_env_flag("TASKS_PROTECT_ID"),
        serialize_writes=_env_flag("TASKS_SERIALIZE_WRITES"),
        atomic_writes=_env_flag("TASKS_ATOMIC_WRITES"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=Path(log_dir) if log_dir else None,
    )
