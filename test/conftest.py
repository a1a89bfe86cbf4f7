import json
from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from main import create_app
from settings import Settings
from storage import TaskStore


@pytest.fixture()
def tasks_file(tmp_path: Path) -> Path:
    """Path of the tasks file. Not created: every test starts from a missing store."""
    return tmp_path / "data" / "tasks.json"


@pytest.fixture()
def template_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "tasks.template.json"


@pytest.fixture()
def write_json():
    """Writes any JSON value (or raw text) to a path, creating parent dirs."""

    def _write(path: Path, data) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        text = data if isinstance(data, str) else json.dumps(data, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def read_json():
    def _read(path: Path):
        return json.loads(path.read_text(encoding="utf-8"))

    return _read


@pytest.fixture()
def store(tasks_file: Path, template_file: Path) -> TaskStore:
    return TaskStore(tasks_file, template_file=template_file)


@pytest.fixture()
def settings(tmp_path: Path, tasks_file: Path, template_file: Path) -> Settings:
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<html><body>Task Tracker</body></html>", encoding="utf-8")
    return Settings(
        tasks_file=tasks_file,
        template_file=template_file,
        upload_dir=tmp_path / "uploads",
        static_dir=static_dir,
    )


@pytest.fixture()
def make_client(settings: Settings):
    """Builds a TestClient around an app configured with `settings` plus overrides."""

    def _make(**overrides) -> TestClient:
        return TestClient(create_app(replace(settings, **overrides)))

    return _make


@pytest.fixture()
def client(make_client):
    with make_client() as c:
        yield c
