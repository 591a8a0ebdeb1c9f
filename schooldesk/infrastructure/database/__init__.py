from .base import Base
from .session import create_engine_from_url, create_session_factory
from .models import RecordModel

__all__ = [
    "Base",
    "create_engine_from_url",
    "create_session_factory",
    "RecordModel",
]
