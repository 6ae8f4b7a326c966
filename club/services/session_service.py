"""Session/auth store: the currently logged-in identity and its bearer token."""
import copy
import logging
import time
from typing import Callable, Dict, Optional

from ..errors import ConflictError, NotFoundError, ValidationError
from ..notifications import Notifier
from ..repositories.session_repository import SessionRepository
from ..validators import CHANGE_PASSWORD_SCHEMA, validate
from .identity_service import IdentityProvider


class SessionService:
    """Holds the authenticated user in memory, mirrored to
    :class:`~club.repositories.session_repository.SessionRepository`.

    The session is restored from the repository on construction.  Login,
    register and logout wait for the identity provider's simulated latency
    before resolving; there is no cancellation, so overlapping calls finish
    in whatever order their waits end.

    Args:
        identity:   Provider that resolves and registers users.
        repository: Persistent mirror of the session.
        notifier:   Receives welcome / logout / failure messages.
        clock:      Wall-clock source used to build tokens.
    """

    def __init__(self, identity: IdentityProvider, repository: SessionRepository,
                 notifier: Optional[Notifier] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self._identity = identity
        self._repo = repository
        self._notifier = notifier or Notifier()
        self._clock = clock
        self._log = logging.getLogger('gameclub.session')
        self._user: Optional[Dict] = None
        self._token: Optional[str] = None
        self._restore()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_user(self) -> Optional[Dict]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    def is_authenticated(self) -> bool:
        return self._user is not None

    def has_role(self, role: str) -> bool:
        return self._user is not None and self._user.get('role') == role

    def is_admin(self) -> bool:
        return self.has_role('ADMIN')

    def is_user(self) -> bool:
        return self.has_role('USER')

    @property
    def balance(self) -> float:
        if self._user is None:
            return 0
        return self._user.get('balance') or 0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def login(self, phone_number: str, role: str) -> Dict:
        """Log in as the directory user matching *phone_number* and *role*.

        Raises:
            NotFoundError: no directory entry matches both fields.
        """
        self._identity.simulate_latency('login')
        try:
            user = self._identity.authenticate(phone_number, role)
        except NotFoundError as exc:
            self._notifier.error(str(exc))
            raise
        self._start(user)
        self._notifier.success(f"Welcome back, {user['name']}!")
        return copy.deepcopy(user)

    def register(self, profile: Dict) -> Dict:
        """Register a new user and log them in.

        Raises:
            ConflictError: the phone number is already registered.
        """
        self._identity.simulate_latency('register')
        try:
            user = self._identity.register(profile)
        except ConflictError as exc:
            self._notifier.error(str(exc))
            raise
        self._start(user)
        self._notifier.success(f"Welcome to Gaming Club, {user['name']}!")
        return copy.deepcopy(user)

    def logout(self) -> None:
        self._identity.simulate_latency('logout')
        self._clear()
        self._notifier.success('Logged out successfully')

    def update_balance(self, amount: float) -> None:
        """Overwrite the session balance with *amount* (no server confirmation)."""
        if self._user is None:
            return
        self._user['balance'] = amount
        self._repo.save(self._user, self._token or '')
        self._log.debug("Session balance set to %s", amount)

    def reset_password(self, phone_number: str) -> None:
        self._identity.simulate_latency('reset')
        self._log.info("Password reset requested for %s", phone_number)
        self._notifier.success('Password reset link sent to your phone')

    def change_password(self, old_password: str, new_password: str) -> None:
        """Acknowledge a password change.

        Raises:
            ValidationError: the current password is blank or the new one
                is shorter than 6 characters.
        """
        try:
            validate(CHANGE_PASSWORD_SCHEMA,
                     {'oldPassword': old_password, 'newPassword': new_password})
        except ValidationError as exc:
            self._notifier.error(exc.message)
            raise
        self._identity.simulate_latency('change')
        self._notifier.success('Password changed successfully')

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start(self, user: Dict) -> None:
        token = f"mock_token_{user['id']}_{int(self._clock() * 1000)}"
        self._user = copy.deepcopy(user)
        self._token = token
        self._repo.save(self._user, token)
        self._log.info("Session started for user %s", user['id'])

    def _clear(self) -> None:
        self._repo.clear()
        self._user = None
        self._token = None

    def _restore(self) -> None:
        user, token = self._repo.load()
        if user is None:
            return
        self._user = user
        self._token = token
        self._log.info("Restored session for user %s", user.get('id'))
