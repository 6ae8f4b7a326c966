"""Repository for the persisted login session ({current_user, auth_token})."""
from typing import Dict, Optional, Tuple

from .base import BaseRepository


class SessionRepository(BaseRepository):
    """Persists the authenticated user and bearer token to a JSON file.

    Schema::

        {
            "current_user": {"id": "<str>", "name": "<str>", "email": "<str>",
                             "phoneNumber": "<str>", "role": "USER|ADMIN",
                             "balance": <float>},
            "auth_token":   "<str>"
        }

    A document missing either key, or holding the wrong types, is treated
    as corrupt: :meth:`load` removes the file and returns ``(None, None)``.
    """

    def __init__(self, file_path: str = '.gameclub_session.json') -> None:
        super().__init__(file_path)

    def load(self) -> Tuple[Optional[Dict], Optional[str]]:
        raw = self._load(None)
        if raw is None:
            self.clear()
            return None, None
        user = raw.get('current_user') if isinstance(raw, dict) else None
        token = raw.get('auth_token') if isinstance(raw, dict) else None
        if not isinstance(user, dict) or not isinstance(token, str) or not token:
            self._log.warning("Discarding malformed session in %s", self._path)
            self.clear()
            return None, None
        return user, token

    def load_token(self) -> Optional[str]:
        """Return only the bearer token (used by the HTTP client on every request)."""
        raw = self._load(None)
        if isinstance(raw, dict) and isinstance(raw.get('auth_token'), str):
            return raw['auth_token'] or None
        return None

    def save(self, user: Dict, token: str) -> None:
        self._save({'current_user': user, 'auth_token': token})

    def clear(self) -> None:
        self._delete()
