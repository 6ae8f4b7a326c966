#!/usr/bin/env python3
"""
Unit tests for the session repository, the mock identity provider and the
session/auth store.

Run with:
    python -m pytest tests/test_session.py
"""
import json
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from club.errors import ConflictError, NotFoundError, ValidationError
from club.notifications import Notifier
from club.repositories import SessionRepository
from club.services import MockIdentityProvider, SessionService
from club.services.identity_service import DEFAULT_DIRECTORY

NEW_PROFILE = {
    'name': 'Sam Newcomer',
    'email': 'sam@gamingclub.com',
    'phoneNumber': '1112223333',
    'role': 'USER',
}


class TmpDirMixin(unittest.TestCase):
    """Creates a fresh temp directory for each test."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.tmp, name)


# ===========================================================================
# Repository
# ===========================================================================

class TestSessionRepository(TmpDirMixin):

    def _make(self):
        return SessionRepository(self._path('session.json'))

    def test_missing_file(self):
        self.assertEqual(self._make().load(), (None, None))

    def test_save_and_load(self):
        repo = self._make()
        repo.save({'id': '2', 'name': 'John Gamer'}, 'tok')
        self.assertEqual(repo.load(), ({'id': '2', 'name': 'John Gamer'}, 'tok'))
        self.assertEqual(repo.load_token(), 'tok')

    def test_corrupt_file_is_cleared(self):
        repo = self._make()
        with open(repo.path, 'w') as f:
            f.write('{not json')
        self.assertEqual(repo.load(), (None, None))
        self.assertFalse(os.path.exists(repo.path))

    def test_missing_token_is_cleared(self):
        repo = self._make()
        with open(repo.path, 'w') as f:
            json.dump({'current_user': {'id': '2'}}, f)
        self.assertEqual(repo.load(), (None, None))
        self.assertFalse(os.path.exists(repo.path))

    def test_clear_without_file(self):
        repo = self._make()
        repo.clear()
        self.assertIsNone(repo.load_token())


# ===========================================================================
# Identity provider
# ===========================================================================

class TestMockIdentityProvider(unittest.TestCase):

    def test_directory_is_copied(self):
        provider = MockIdentityProvider(latency=(0, 0))
        provider.users[0]['name'] = 'Changed'
        self.assertEqual(DEFAULT_DIRECTORY[0]['name'], 'Admin User')

    def test_latency_uses_sleep(self):
        sleep = MagicMock()
        provider = MockIdentityProvider(latency=(0.5, 1.0), sleep=sleep)
        provider.simulate_latency('login')
        delay = sleep.call_args[0][0]
        self.assertTrue(0.5 <= delay <= 1.0)

    def test_logout_latency_is_halved(self):
        sleep = MagicMock()
        provider = MockIdentityProvider(latency=(0.5, 1.0), sleep=sleep)
        provider.simulate_latency('logout')
        delay = sleep.call_args[0][0]
        self.assertTrue(0.25 <= delay <= 0.5)

    def test_zero_latency_does_not_sleep(self):
        sleep = MagicMock()
        MockIdentityProvider(latency=(0, 0), sleep=sleep).simulate_latency('login')
        sleep.assert_not_called()


# ===========================================================================
# Session service
# ===========================================================================

class TestSessionService(TmpDirMixin):

    def setUp(self):
        super().setUp()
        self.repo = SessionRepository(self._path('session.json'))
        self.identity = MockIdentityProvider(latency=(0, 0))
        self.notifier = Notifier()
        self.session = self._make()

    def _make(self):
        return SessionService(self.identity, self.repo, self.notifier,
                              clock=lambda: 1700000000.0)

    def test_starts_logged_out(self):
        self.assertFalse(self.session.is_authenticated())
        self.assertIsNone(self.session.current_user)
        self.assertEqual(self.session.balance, 0)

    def test_login_every_directory_entry(self):
        for entry in DEFAULT_DIRECTORY:
            with self.subTest(phone=entry['phoneNumber']):
                user = self.session.login(entry['phoneNumber'], entry['role'])
                self.assertEqual(user['id'], entry['id'])
                self.assertTrue(self.session.is_authenticated())
                self.assertEqual(self.repo.load()[0]['id'], entry['id'])

    def test_login_builds_token_and_notifies(self):
        self.session.login('9876543210', 'USER')
        self.assertEqual(self.session.token, 'mock_token_2_1700000000000')
        self.assertEqual(self.repo.load_token(), 'mock_token_2_1700000000000')
        self.assertEqual(self.notifier.last()['message'], 'Welcome back, John Gamer!')

    def test_login_wrong_role(self):
        with self.assertRaises(NotFoundError):
            self.session.login('9876543210', 'ADMIN')
        self.assertFalse(self.session.is_authenticated())
        self.assertEqual(self.notifier.messages('error'), ['Invalid phone number or role'])

    def test_roles(self):
        self.session.login('1234567890', 'ADMIN')
        self.assertTrue(self.session.is_admin())
        self.assertFalse(self.session.is_user())
        self.assertTrue(self.session.has_role('ADMIN'))

    def test_register_new_user(self):
        user = self.session.register(NEW_PROFILE)
        self.assertEqual(user['id'], '4')
        self.assertEqual(user['balance'], 0)
        self.assertTrue(self.session.is_authenticated())
        self.assertEqual(self.notifier.last()['message'], 'Welcome to Gaming Club, Sam Newcomer!')
        self.assertIsNotNone(self.identity.find_by_phone('1112223333'))

    def test_register_existing_phone(self):
        before = [dict(u) for u in self.identity.users]
        with self.assertRaises(ConflictError):
            self.session.register(dict(NEW_PROFILE, phoneNumber='9876543210'))
        self.assertEqual(self.identity.users, before)
        self.assertFalse(self.session.is_authenticated())

    def test_session_restored_on_construction(self):
        self.session.login('5555555555', 'USER')
        restored = self._make()
        self.assertEqual(restored.current_user['name'], 'Jane Player')
        self.assertEqual(restored.token, self.session.token)

    def test_corrupt_session_file_starts_logged_out(self):
        with open(self.repo.path, 'w') as f:
            f.write('garbage')
        self.assertFalse(self._make().is_authenticated())
        self.assertFalse(os.path.exists(self.repo.path))

    def test_update_balance_persists(self):
        self.session.login('9876543210', 'USER')
        self.session.update_balance(123.5)
        self.assertEqual(self.session.balance, 123.5)
        self.assertEqual(self.repo.load()[0]['balance'], 123.5)

    def test_update_balance_when_logged_out(self):
        self.session.update_balance(99)
        self.assertFalse(os.path.exists(self.repo.path))

    def test_logout(self):
        self.session.login('9876543210', 'USER')
        self.session.logout()
        self.assertFalse(self.session.is_authenticated())
        self.assertIsNone(self.session.token)
        self.assertFalse(os.path.exists(self.repo.path))
        self.assertEqual(self.notifier.last()['message'], 'Logged out successfully')

    def test_password_acknowledgements(self):
        self.session.reset_password('9876543210')
        self.session.change_password('oldsecret', 'newsecret')
        self.assertEqual(self.notifier.messages('success'), [
            'Password reset link sent to your phone',
            'Password changed successfully',
        ])

    def test_change_password_too_short(self):
        with self.assertRaises(ValidationError) as ctx:
            self.session.change_password('oldsecret', 'abc')
        self.assertEqual(ctx.exception.errors,
                         {'newPassword': 'Password must be at least 6 characters'})
        self.assertEqual(self.notifier.messages('error'), ['Password must be at least 6 characters'])
        self.assertEqual(self.notifier.messages('success'), [])

    def test_change_password_requires_current(self):
        with self.assertRaises(ValidationError) as ctx:
            self.session.change_password('', 'newsecret')
        self.assertEqual(ctx.exception.errors, {'oldPassword': 'Current password is required'})


if __name__ == '__main__':
    unittest.main()
