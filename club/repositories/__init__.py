"""Repository package: expose all concrete repositories from one import."""
from .session_repository import SessionRepository

__all__ = [
    'SessionRepository',
]
