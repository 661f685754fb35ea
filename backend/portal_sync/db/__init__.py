# Database configuration and session management
from .base import Base
from .session import dispose_engine, get_engine, get_session_factory

__all__ = ["Base", "dispose_engine", "get_engine", "get_session_factory"]
