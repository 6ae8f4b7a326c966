"""Transient user notifications (the portal's "toasts")."""
import logging
from collections import deque
from datetime import datetime
from typing import Deque, Dict, List, Optional

from colorama import Fore, Style

_COLOURS = {
    'success': Fore.GREEN,
    'error': Fore.RED,
    'info': Fore.CYAN,
}


class Notifier:
    """Collects short-lived success/error messages and optionally echoes them
    to the terminal.

    The notifier keeps the *max_recent* most recent messages so screens (and
    tests) can inspect what the user was told.  Every message is also logged
    under ``gameclub.notify``.

    Args:
        echo:       Print each message to stdout in colour.
        max_recent: Size of the in-memory ring buffer.
    """

    def __init__(self, echo: bool = False, max_recent: int = 50) -> None:
        self.echo = echo
        self.recent: Deque[Dict] = deque(maxlen=max_recent)
        self._log = logging.getLogger('gameclub.notify')

    def success(self, message: str) -> None:
        self._push('success', message)

    def error(self, message: str) -> None:
        self._push('error', message)

    def info(self, message: str) -> None:
        self._push('info', message)

    def messages(self, level: Optional[str] = None) -> List[str]:
        """Return recent message texts, oldest first, optionally filtered by *level*."""
        return [n['message'] for n in self.recent if level is None or n['level'] == level]

    def last(self) -> Optional[Dict]:
        return self.recent[-1] if self.recent else None

    def clear(self) -> None:
        self.recent.clear()

    def _push(self, level: str, message: str) -> None:
        self.recent.append({
            'level': level,
            'message': message,
            'at': datetime.now().isoformat(),
        })
        if level == 'error':
            self._log.warning("%s", message)
        else:
            self._log.info("%s", message)
        if self.echo:
            print(f"{_COLOURS.get(level, '')}{message}{Style.RESET_ALL}")
