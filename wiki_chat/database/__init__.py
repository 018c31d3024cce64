# wiki_chat/database/__init__.py
from .base import Base
from .settings import DatabaseSettings
from .session_factory import DatabaseSessionFactory
from .container import create_database_container

__all__ = [
    "Base",
    "DatabaseSettings",
    "DatabaseSessionFactory",
    "create_database_container",
]
