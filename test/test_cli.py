import pytest

import cli
from storage import TaskStore


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


@pytest.fixture()
def run(tasks_file, template_file):
    def _run(*args):
        return cli.main(["--tasks-file", str(tasks_file), "--template-file", str(template_file), *args])

    return _run


def test_list_empty_store(run, capsys):
    assert run("list") == 0
    assert capsys.readouterr().out.strip() == "No tasks."


def test_list_prints_one_line_per_task(run, tasks_file, write_json, capsys):
    write_json(tasks_file, [
        {"id": "1", "title": "Write report", "status": "To Do", "priority": "High", "dueDate": "2026-01-01"},
        {"id": "2", "title": "Review", "status": "Completed", "priority": "Low", "dueDate": "2026-02-01"},
    ])

    assert run("list") == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("1  To Do")
    assert lines[0].endswith("Write report")
    assert "2026-02-01" in lines[1]


def test_delete_and_missing_task(run, tasks_file, write_json, read_json, capsys):
    write_json(tasks_file, [{"id": "1"}, {"id": "2"}])

    assert run("delete", "1") == 0
    assert "1 tasks remaining" in capsys.readouterr().out
    assert read_json(tasks_file) == [{"id": "2"}]

    assert run("delete", "1") == 1
    assert "Task with ID 1 not found." in capsys.readouterr().err


def test_corrupt_store_reports_error(run, tasks_file, write_json, capsys):
    write_json(tasks_file, "{")
    assert run("list") == 1
    assert "corrupted" in capsys.readouterr().err


def test_init_materializes_template(run, tasks_file, template_file, write_json, read_json, capsys):
    write_json(template_file, [{"id": "seed", "title": "Seed"}])

    assert run("init") == 0
    assert "Created" in capsys.readouterr().out
    assert read_json(tasks_file) == [{"id": "seed", "title": "Seed"}]

    assert run("init") == 0
    assert "already exists (1 tasks)" in capsys.readouterr().out


def test_list_handles_null_fields(run, tasks_file, write_json, capsys):
    write_json(tasks_file, [
        {"id": "1", "title": "Write report", "status": "To Do", "priority": "High", "dueDate": "2026-01-01"},
    ])
    TaskStore(tasks_file).update_by_id("1", {"status": None, "priority": None, "title": None})

    assert run("list") == 0

    line = capsys.readouterr().out.strip()
    assert line.startswith("1  N/A")
    assert "2026-01-01" in line
