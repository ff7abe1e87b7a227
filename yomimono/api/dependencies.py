"""
Request-scoped access to application state for the API routers.
"""

from fastapi import Request

from ..config.settings import YomimonoSettings
from ..database.connection import DatabaseConnection


def get_db(request: Request) -> DatabaseConnection:
    return request.app.state.db


def get_app_settings(request: Request) -> YomimonoSettings:
    return request.app.state.settings
