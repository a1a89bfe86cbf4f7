import argparse
import sys
from dataclasses import replace
from pathlib import Path

import uvicorn

from errors import TaskError
from logging_setup import setup_logging
from main import build_store, create_app
from settings import load_settings


def cmd_serve(settings, args) -> int:
    host = args.host or settings.host
    port = args.port or settings.port
    print(f"Project at: http://{'localhost' if host == '0.0.0.0' else host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port)
    return 0


def cmd_list(store, args) -> int:
    tasks = store.load_all()
    if not tasks:
        print("No tasks.")
        return 0
    for task in tasks:
        print(
            f"{task.get('id') or 'N/A'}  "
            f"{str(task.get('status') or 'N/A'):<11}  "
            f"{str(task.get('priority') or 'N/A'):<6}  "
            f"{task.get('dueDate') or 'N/A'}  "
            f"{task.get('title') or ''}"
        )
    return 0


def cmd_delete(store, args) -> int:
    result = store.delete_by_id(args.task_id)
    print(f"Deleted task {args.task_id}. {result.remaining_count} tasks remaining.")
    return 0


def cmd_init(store, args) -> int:
    existed = store.tasks_file.exists()
    tasks = store.materialize()
    if existed:
        print(f"{store.tasks_file} already exists ({len(tasks)} tasks).")
    else:
        print(f"Created {store.tasks_file} with {len(tasks)} tasks.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Task tracker server and store tools.")
    parser.add_argument("--tasks-file", type=str, default=None, help="Path to the tasks JSON file (overrides TASKS_FILE).")
    parser.add_argument("--template-file", type=str, default=None, help="Path to the seed template (overrides TASKS_TEMPLATE_FILE).")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    parser_serve = subparsers.add_parser("serve", help="Run the web server.")
    parser_serve.add_argument("--host", type=str, default=None, help="Bind address (overrides HOST).")
    parser_serve.add_argument("--port", type=int, default=None, help="Port (overrides PORT).")

    subparsers.add_parser("list", help="List all tasks.")

    parser_delete = subparsers.add_parser("delete", help="Delete a task by id.")
    parser_delete.add_argument("task_id", type=str, help="Id of the task to delete.")

    subparsers.add_parser("init", help="Create the tasks file from the template if it is missing.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings()
    if args.tasks_file:
        settings = replace(settings, tasks_file=Path(args.tasks_file))
    if args.template_file:
        settings = replace(settings, template_file=Path(args.template_file))
    setup_logging(settings.log_level, settings.log_dir)

    if args.command == "serve":
        return cmd_serve(settings, args)

    store = build_store(settings)
    commands = {"list": cmd_list, "delete": cmd_delete, "init": cmd_init}
    try:
        return commands[args.command](store, args)
    except TaskError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
