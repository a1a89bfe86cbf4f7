# dependencies.py
from fastapi import Request

from settings import Settings
from storage import TaskStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> TaskStore:
    """
    The store is built once per app in create_app() and shared by all
    requests. It holds no task data, only the file paths and write policy.
    """
    return request.app.state.store
