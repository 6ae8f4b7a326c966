#!/usr/bin/env python3
"""
Tests for gameclub.py: configuration loading, logging setup, portal wiring,
the interactive screens (with scripted input) and the one-shot CLI flags.

Run with:
    python -m pytest tests/test_gameclub.py
"""
import json
import logging
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import gameclub
import mock_api
from club.errors import ConfigError
from mock_backend import make_client

ENV_KEYS = ('GAMECLUB_API_BASE_URL', 'GAMECLUB_USE_MOCK_API',
            'GAMECLUB_API_TIMEOUT', 'GAMECLUB_LOG_LEVEL')


class TmpDirMixin(unittest.TestCase):
    """Fresh temp directory (also the cwd) and a clean GAMECLUB_* environment."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self._orig = os.getcwd()
        os.chdir(self.tmp)
        self._env = patch.dict(os.environ)
        self._env.start()
        for key in ENV_KEYS:
            os.environ.pop(key, None)

    def tearDown(self):
        self._env.stop()
        os.chdir(self._orig)
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _write_config(self, data, name='config.json') -> str:
        path = os.path.join(self.tmp, name)
        with open(path, 'w') as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)
        return path


# ===========================================================================
# Configuration and logging
# ===========================================================================

class TestLoadConfig(TmpDirMixin):

    def test_missing_file_uses_defaults(self):
        config = gameclub.load_config(os.path.join(self.tmp, 'absent.json'))
        self.assertEqual(config, gameclub.DEFAULT_CONFIG)

    def test_file_values_override_defaults(self):
        path = self._write_config({'api_base_url': 'http://club.example', 'api_timeout_seconds': 3})
        config = gameclub.load_config(path)
        self.assertEqual(config['api_base_url'], 'http://club.example')
        self.assertEqual(config['api_timeout_seconds'], 3)
        self.assertEqual(config['session_file'], '.gameclub_session.json')

    def test_env_overrides_file(self):
        path = self._write_config({'api_base_url': 'http://club.example'})
        os.environ['GAMECLUB_API_BASE_URL'] = 'http://env.example'
        os.environ['GAMECLUB_USE_MOCK_API'] = 'yes'
        os.environ['GAMECLUB_API_TIMEOUT'] = '2.5'
        os.environ['GAMECLUB_LOG_LEVEL'] = 'DEBUG'
        config = gameclub.load_config(path)
        self.assertEqual(config['api_base_url'], 'http://env.example')
        self.assertTrue(config['use_mock_api'])
        self.assertEqual(config['api_timeout_seconds'], 2.5)
        self.assertEqual(config['log_level'], 'DEBUG')

    def test_malformed_json(self):
        with self.assertRaises(ConfigError):
            gameclub.load_config(self._write_config('{broken'))

    def test_non_object_json(self):
        with self.assertRaises(ConfigError):
            gameclub.load_config(self._write_config([1, 2]))

    def test_bad_timeout_env(self):
        os.environ['GAMECLUB_API_TIMEOUT'] = 'soon'
        with self.assertRaises(ConfigError):
            gameclub.load_config('absent.json')

    def test_template_lists_every_default_key(self):
        template_path = os.path.join(
            os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
            'config_template.json',
        )
        with open(template_path) as f:
            template = json.load(f)
        self.assertEqual(set(template), set(gameclub.DEFAULT_CONFIG))

    def test_resolve_base_url(self):
        self.assertEqual(gameclub.resolve_base_url(gameclub.DEFAULT_CONFIG), 'http://localhost:8080')
        mock = dict(gameclub.DEFAULT_CONFIG, use_mock_api=True)
        self.assertEqual(gameclub.resolve_base_url(mock), 'http://127.0.0.1:5000/api')


class TestSetupLogging(unittest.TestCase):

    def tearDown(self):
        gameclub.setup_logging('WARNING')

    def test_level_applied(self):
        logger = gameclub.setup_logging('debug')
        self.assertEqual(logger.level, logging.DEBUG)

    def test_unknown_level_falls_back(self):
        self.assertEqual(gameclub.setup_logging('chatty').level, logging.WARNING)

    def test_single_handler(self):
        gameclub.setup_logging('INFO')
        gameclub.setup_logging('INFO')
        self.assertEqual(len(logging.getLogger('gameclub').handlers), 1)


# ===========================================================================
# Portal screens
# ===========================================================================

class ScriptedInput:
    """Feeds canned answers to the portal's prompts."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if not self.answers:
            raise AssertionError(f'Unexpected prompt: {prompt!r}')
        return self.answers.pop(0)


class PortalMixin(TmpDirMixin):

    def _portal(self, *answers):
        self.client, self.adapter = make_client()
        config = {
            'session_file': os.path.join(self.tmp, 'session.json'),
            'simulate_latency': False,
            'echo_notifications': False,
        }
        self.input = ScriptedInput(*answers)
        with patch('builtins.print'):
            portal = gameclub.GameClubPortal(config, input_func=self.input, client=self.client)
        return portal


class TestPortalWiring(PortalMixin):

    def test_services_share_cache_and_session(self):
        portal = self._portal()
        self.assertIs(portal.games._cache, portal.cache)
        self.assertIs(portal.purchases._session, portal.session)
        self.assertIs(portal.recharges._session, portal.session)

    def test_default_client_uses_session_token(self):
        config = {
            'session_file': os.path.join(self.tmp, 'session.json'),
            'simulate_latency': False,
            'echo_notifications': False,
            'use_mock_api': True,
        }
        portal = gameclub.GameClubPortal(config)
        self.assertEqual(portal.client.base_url, 'http://127.0.0.1:5000/api')
        portal.session.login('9876543210', 'USER')
        self.assertEqual(portal.client._headers(),
                         {'Authorization': f'Bearer {portal.session.token}'})


class TestPortalScreens(PortalMixin):

    @patch('builtins.print')
    def test_login_screen(self, _print):
        portal = self._portal('9876543210', 'USER')
        self.assertTrue(portal.login_screen())
        self.assertTrue(portal.session.is_user())

    @patch('builtins.print')
    def test_login_screen_invalid_phone(self, _print):
        portal = self._portal('123', 'USER')
        self.assertFalse(portal.login_screen())
        self.assertFalse(portal.session.is_authenticated())

    @patch('builtins.print')
    def test_register_screen(self, _print):
        portal = self._portal('Sam Newcomer', '1112223333', 'sam@gamingclub.com', 'USER')
        self.assertTrue(portal.register_screen())
        self.assertEqual(portal.session.current_user['name'], 'Sam Newcomer')

    @patch('builtins.print')
    def test_buy_first_game(self, _print):
        portal = self._portal('1', 'y')
        portal.session.login('9876543210', 'USER')
        portal.show_games()
        self.assertEqual(portal.session.balance, 450)
        self.assertEqual(len(mock_api.store.all('transactions')), 1)

    @patch('builtins.print')
    def test_declined_purchase_sends_nothing(self, _print):
        portal = self._portal('1', 'n')
        portal.session.login('9876543210', 'USER')
        portal.show_games()
        self.assertEqual(mock_api.store.all('transactions'), [])

    @patch('builtins.print')
    def test_buy_products(self, _print):
        portal = self._portal('1', '2', 'y')
        portal.session.login('9876543210', 'USER')
        portal.show_products()
        self.assertEqual(mock_api.store.get('products', '1')['stock'], 1)

    @patch('builtins.print')
    def test_recharge_screen(self, _print):
        portal = self._portal('100', 'paypal')
        portal.session.login('9876543210', 'USER')
        portal.show_recharge()
        self.assertEqual(portal.session.balance, 600)

    @patch('builtins.print')
    def test_member_dashboard(self, _print):
        portal = self._portal('1', 'y')
        portal.session.login('9876543210', 'USER')
        portal.show_games()
        summary = portal.show_dashboard()
        self.assertEqual(summary['total_spent'], 50)
        self.assertEqual(summary['balance'], 450)

    @patch('builtins.print')
    def test_admin_adds_game(self, _print):
        portal = self._portal('a', 'Pixel Golf', '15', 'Mini golf on tiny courses.', 'sports', 'active')
        portal.session.login('1234567890', 'ADMIN')
        portal.admin_games()
        self.assertIn('Pixel Golf', [g['name'] for g in mock_api.store.all('games')])

    @patch('builtins.print')
    def test_admin_transactions_filter(self, _print):
        portal = self._portal('product', 'date-desc')
        mock_api.store.insert('transactions', {'memberId': '2', 'gameId': '1', 'amount': 50})
        mock_api.store.insert('transactions', {'memberId': '2', 'gameId': '', 'amount': 60})
        rows = portal.admin_transactions()
        self.assertEqual([r['amount'] for r in rows], [60])

    @patch('builtins.print')
    def test_interactive_quit(self, _print):
        portal = self._portal('9', 'q')
        portal.interactive_mode()
        self.assertEqual(self.input.answers, [])


class TestRendering(unittest.TestCase):

    def test_transaction_row(self):
        row = gameclub.render_transaction({
            'id': '7', 'gameId': '1', 'type': 'game', 'amount': 50,
            'date': '2024-03-05T15:07:00Z', 'status': 'COMPLETED',
        })
        self.assertIn('$50.00', row)
        self.assertIn('Mar 5, 2024, 3:07 PM', row)

    def test_member_row(self):
        row = gameclub.render_member({'id': '2', 'name': 'John Gamer',
                                      'phoneNumber': '9876543210', 'balance': 500,
                                      'isActive': True})
        self.assertIn('(987) 654-3210', row)
        self.assertIn('active', row)


# ===========================================================================
# CLI
# ===========================================================================

class TestMain(TmpDirMixin):

    def setUp(self):
        super().setUp()
        self.config_path = self._write_config({'simulate_latency': False})

    @patch('builtins.print')
    def test_login_then_logout(self, _print):
        self.assertEqual(gameclub.main(['--config', self.config_path, '--login', '9876543210']), 0)
        self.assertTrue(os.path.exists(os.path.join(self.tmp, '.gameclub_session.json')))
        self.assertEqual(gameclub.main(['--config', self.config_path, '--logout']), 0)
        self.assertFalse(os.path.exists(os.path.join(self.tmp, '.gameclub_session.json')))

    @patch('builtins.print')
    def test_bad_login_exit_code(self, _print):
        self.assertEqual(gameclub.main(['--config', self.config_path,
                                        '--login', '9876543210', '--role', 'ADMIN']), 1)

    @patch('builtins.print')
    def test_balance(self, mock_print):
        self.assertEqual(gameclub.main(['--config', self.config_path, '--balance']), 0)
        mock_print.assert_any_call('$0.00')

    @patch('builtins.print')
    def test_malformed_config(self, _print):
        path = self._write_config('{oops', name='bad.json')
        self.assertEqual(gameclub.main(['--config', path, '--balance']), 1)


if __name__ == '__main__':
    unittest.main()
