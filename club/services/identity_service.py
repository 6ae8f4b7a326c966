"""Identity providers: who may log in, and with which role."""
import copy
import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from ..errors import ConflictError, NotFoundError

DEFAULT_DIRECTORY: List[Dict] = [
    {
        'id': '1',
        'name': 'Admin User',
        'email': 'admin@gamingclub.com',
        'phoneNumber': '1234567890',
        'role': 'ADMIN',
        'balance': 10000,
    },
    {
        'id': '2',
        'name': 'John Gamer',
        'email': 'john@gamingclub.com',
        'phoneNumber': '9876543210',
        'role': 'USER',
        'balance': 500,
    },
    {
        'id': '3',
        'name': 'Jane Player',
        'email': 'jane@gamingclub.com',
        'phoneNumber': '5555555555',
        'role': 'USER',
        'balance': 250,
    },
]


class IdentityProvider(ABC):
    """Authentication capability used by :class:`~club.services.session_service.SessionService`."""

    @abstractmethod
    def authenticate(self, phone_number: str, role: str) -> Dict:
        """Return the user matching *phone_number* and *role*.

        Raises:
            NotFoundError: no such user.
        """

    @abstractmethod
    def register(self, profile: Dict) -> Dict:
        """Create a user from *profile* (name, email, phoneNumber, role).

        Raises:
            ConflictError: the phone number is already registered.
        """

    def simulate_latency(self, kind: str = 'auth') -> None:
        """Hook for providers that model network delay; real providers do nothing."""


class MockIdentityProvider(IdentityProvider):
    """In-memory user directory with simulated network latency.

    Args:
        directory: Initial users; defaults to a copy of :data:`DEFAULT_DIRECTORY`.
        latency:   ``(low, high)`` seconds slept before login/register resolve.
                   Logout uses half of those values.  ``(0, 0)`` disables it.
        sleep:     Sleep function (injectable for tests).
    """

    def __init__(self, directory: Optional[List[Dict]] = None,
                 latency: Tuple[float, float] = (0.5, 1.0),
                 sleep=time.sleep) -> None:
        source = DEFAULT_DIRECTORY if directory is None else directory
        self.users: List[Dict] = copy.deepcopy(source)
        self.latency = latency
        self._sleep = sleep
        self._log = logging.getLogger('gameclub.identity')

    def simulate_latency(self, kind: str = 'auth') -> None:
        low, high = self.latency
        if kind == 'logout':
            low, high = low / 2, high / 2
        if high <= 0:
            return
        self._sleep(random.uniform(low, high))

    def find_by_phone(self, phone_number: str) -> Optional[Dict]:
        for user in self.users:
            if user.get('phoneNumber') == phone_number:
                return user
        return None

    def authenticate(self, phone_number: str, role: str) -> Dict:
        for user in self.users:
            if user.get('phoneNumber') == phone_number and user.get('role') == role:
                return copy.deepcopy(user)
        self._log.info("No directory entry for %s/%s", phone_number, role)
        raise NotFoundError('Invalid phone number or role')

    def register(self, profile: Dict) -> Dict:
        if self.find_by_phone(profile.get('phoneNumber', '')) is not None:
            raise ConflictError('Phone number already registered')
        user = {
            'id': str(len(self.users) + 1),
            'name': profile.get('name', ''),
            'email': profile.get('email', ''),
            'phoneNumber': profile.get('phoneNumber', ''),
            'role': profile.get('role', 'USER'),
            'balance': 0,
        }
        self.users.append(user)
        self._log.info("Registered user %s (%s)", user['id'], user['role'])
        return copy.deepcopy(user)
