#!/usr/bin/env python3
"""
Gaming Club Portal
Member and administrator terminal portal for the gaming club REST API:
browse and buy games and products, recharge your balance, review your
history, and (as an admin) manage the catalog and members.
"""

import argparse
import json
import logging
import os
import sys
from typing import Callable, Dict, List, Optional

from colorama import Fore, Style, init
from dotenv import load_dotenv

from api_client import ApiClient
from club.errors import ClubError, ConfigError, PurchaseError, ValidationError
from club.formatters import (
    format_currency, format_date_time, format_phone_number, format_relative_time,
)
from club.notifications import Notifier
from club.query_cache import QueryCache
from club.repositories import SessionRepository
from club.services import (
    GameService, MemberService, MockIdentityProvider, ProductService,
    PurchaseService, RechargeService, SessionService, TransactionService,
    can_purchase_game, can_purchase_product, transaction_kind,
)
from club.services import report_service
from club.validators import (
    GAME_SCHEMA, LOGIN_SCHEMA, MEMBER_SCHEMA, PAYMENT_METHODS, PRODUCT_SCHEMA,
    REGISTER_SCHEMA, validate,
)

# Initialize colorama for cross-platform colored terminal output
init(autoreset=True)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def setup_logging(level: str = 'WARNING') -> logging.Logger:
    """Configure the root ``gameclub`` logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to WARNING so normal use is quiet.

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, level.upper(), logging.WARNING)
    logger = logging.getLogger('gameclub')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


logger = setup_logging()

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CONFIG: Dict = {
    'api_base_url': 'http://localhost:8080',
    'use_mock_api': False,
    'mock_api_url': 'http://127.0.0.1:5000/api',
    'api_timeout_seconds': 10,
    'session_file': '.gameclub_session.json',
    'simulate_latency': True,
    'echo_notifications': True,
    'log_level': 'WARNING',
}

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def load_config(config_path: str = 'config.json') -> Dict:
    """Load configuration from a JSON file with environment variable support.

    Environment variables take precedence over config file values:
    - GAMECLUB_API_BASE_URL overrides api_base_url
    - GAMECLUB_USE_MOCK_API overrides use_mock_api
    - GAMECLUB_API_TIMEOUT overrides api_timeout_seconds
    - GAMECLUB_LOG_LEVEL overrides log_level

    A missing file is not an error: defaults are used.

    Raises:
        ConfigError: the file exists but is not a JSON object.
    """
    config = dict(DEFAULT_CONFIG)
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Error parsing config file {config_path}: {e}")
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {config_path} must contain a JSON object")
        config.update(loaded)
    else:
        logger.warning("Config file '%s' not found, using defaults", config_path)

    if os.getenv('GAMECLUB_API_BASE_URL'):
        config['api_base_url'] = os.getenv('GAMECLUB_API_BASE_URL')
    if os.getenv('GAMECLUB_USE_MOCK_API'):
        config['use_mock_api'] = os.getenv('GAMECLUB_USE_MOCK_API').lower() in _TRUE_VALUES
    if os.getenv('GAMECLUB_API_TIMEOUT'):
        try:
            config['api_timeout_seconds'] = float(os.getenv('GAMECLUB_API_TIMEOUT'))
        except ValueError:
            raise ConfigError('GAMECLUB_API_TIMEOUT must be a number')
    if os.getenv('GAMECLUB_LOG_LEVEL'):
        config['log_level'] = os.getenv('GAMECLUB_LOG_LEVEL')
    return config


def resolve_base_url(config: Dict) -> str:
    if config.get('use_mock_api'):
        return config.get('mock_api_url', DEFAULT_CONFIG['mock_api_url'])
    return config.get('api_base_url', DEFAULT_CONFIG['api_base_url'])


# ---------------------------------------------------------------------------
# Row rendering
# ---------------------------------------------------------------------------

def render_game(game: Dict, user: Optional[Dict] = None) -> str:
    flag = '' if can_purchase_game(user, game) else f" {Fore.RED}[unavailable]"
    return (f"{Fore.CYAN}{game.get('name', '?')}{Style.RESET_ALL} "
            f"({game.get('genre', '')}, {game.get('status', '')}) "
            f"{Fore.GREEN}{format_currency(game.get('price'))}{flag}")


def render_product(product: Dict, user: Optional[Dict] = None) -> str:
    stock = product.get('stock') or 0
    stock_text = f"{stock} in stock" if stock > 0 else f"{Fore.RED}out of stock{Style.RESET_ALL}"
    flag = '' if can_purchase_product(user, product) else f" {Fore.RED}[unavailable]"
    return (f"{Fore.CYAN}{product.get('name', '?')}{Style.RESET_ALL} "
            f"({product.get('category', '')}) {Fore.GREEN}{format_currency(product.get('price'))}"
            f"{Style.RESET_ALL} - {stock_text}{flag}")


def render_transaction(transaction: Dict) -> str:
    kind = transaction_kind(transaction)
    ref = transaction.get('gameId') if kind == 'game' else transaction.get('productId', '')
    return (f"#{transaction.get('id')} {kind:<7} {ref or '-':<6} "
            f"{format_currency(transaction.get('amount')):>12} "
            f"{format_date_time(transaction.get('date'))} "
            f"({format_relative_time(transaction.get('date'))}) "
            f"{transaction.get('status', '')}")


def render_member(member: Dict) -> str:
    state = 'active' if member.get('isActive') else 'inactive'
    return (f"#{member.get('id')} {member.get('name', '?'):<20} "
            f"{format_phone_number(member.get('phoneNumber')):<15} "
            f"{format_currency(member.get('balance')):>12} {state}")


class GameClubPortal:
    """Application root: owns the session, cache and services and runs the
    interactive screens.

    Args:
        config:     Configuration dict (see :func:`load_config`).
        input_func: Prompt function (``input`` by default; injectable for tests).
        client:     Pre-built HTTP client (tests inject one bound to the mock API).
    """

    def __init__(self, config: Optional[Dict] = None,
                 input_func: Callable[[str], str] = input,
                 client: Optional[ApiClient] = None) -> None:
        self.config = dict(DEFAULT_CONFIG, **(config or {}))
        setup_logging(self.config.get('log_level', 'WARNING'))
        self._log = logging.getLogger('gameclub.portal')
        self._input = input_func

        self.notifier = Notifier(echo=self.config.get('echo_notifications', True))
        self.session_repo = SessionRepository(self.config['session_file'])
        latency = (0.5, 1.0) if self.config.get('simulate_latency', True) else (0.0, 0.0)
        self.identity = MockIdentityProvider(latency=latency)
        self.session = SessionService(self.identity, self.session_repo, self.notifier)

        self.client = client or ApiClient(
            resolve_base_url(self.config),
            timeout=self.config.get('api_timeout_seconds', 10),
            token_source=self.session_repo.load_token,
            notifier=self.notifier,
        )
        self.cache = QueryCache()
        self.games = GameService(self.client, self.cache, self.notifier)
        self.products = ProductService(self.client, self.cache, self.notifier)
        self.members = MemberService(self.client, self.cache, self.notifier)
        self.recharges = RechargeService(self.client, self.cache, self.notifier, session=self.session)
        self.transactions = TransactionService(self.client, self.cache, self.notifier)
        self.purchases = PurchaseService(self.client, self.cache, self.notifier, session=self.session)
        self._log.debug("Portal ready (api=%s)", self.client.base_url)

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    def _ask(self, label: str, default: str = '') -> str:
        suffix = f" [{default}]" if default else ''
        answer = self._input(f"{Fore.GREEN}{label}{suffix}: {Fore.WHITE}").strip()
        return answer or default

    def _choose(self, items: List[Dict], label: str) -> Optional[Dict]:
        if not items:
            print(f"{Fore.YELLOW}Nothing to choose from.")
            return None
        raw = self._ask(f"{label} number (blank to cancel)")
        if not raw:
            return None
        try:
            index = int(raw) - 1
        except ValueError:
            print(f"{Fore.RED}Invalid choice.")
            return None
        if not 0 <= index < len(items):
            print(f"{Fore.RED}Invalid choice.")
            return None
        return items[index]

    def _form(self, schema: Dict, fields: List[str], current: Optional[Dict] = None) -> Optional[Dict]:
        """Prompt for *fields* and validate against *schema*; prints errors inline."""
        current = current or {}
        data = {f: self._ask(f, str(current.get(f, '')) if f in current else '') for f in fields}
        try:
            return validate(schema, data, partial=bool(current))
        except ValidationError as exc:
            for field, message in exc.errors.items():
                print(f"{Fore.RED}  {field}: {message}")
            return None

    # ------------------------------------------------------------------
    # Authentication screens
    # ------------------------------------------------------------------

    def login_screen(self) -> bool:
        data = self._form(LOGIN_SCHEMA, ['phoneNumber', 'role'])
        if data is None:
            return False
        try:
            self.session.login(data['phoneNumber'], data['role'])
        except ClubError:
            return False
        return True

    def register_screen(self) -> bool:
        data = self._form(REGISTER_SCHEMA, ['name', 'phoneNumber', 'email', 'role'])
        if data is None:
            return False
        try:
            self.session.register(data)
        except ClubError:
            return False
        return True

    # ------------------------------------------------------------------
    # Member screens
    # ------------------------------------------------------------------

    def show_dashboard(self) -> Dict:
        user = self.session.current_user or {}
        summary = report_service.member_dashboard(
            self.transactions.member_transactions(user.get('id')),
            self.recharges.member_recharges(user.get('id')),
            self.session.balance,
        )
        print(f"\n{Fore.CYAN}{Style.BRIGHT}Welcome, {user.get('name', 'guest')}")
        print(f"Balance:         {format_currency(summary['balance'])}")
        print(f"Total spent:     {format_currency(summary['total_spent'])}")
        print(f"Total recharged: {format_currency(summary['total_recharged'])}")
        for t in summary['recent_transactions']:
            print(f"  {render_transaction(t)}")
        return summary

    def show_games(self) -> None:
        games = self.games.list_games()
        user = self.session.current_user
        for i, game in enumerate(games, 1):
            print(f"{Fore.YELLOW}{i}. {render_game(game, user)}")
        game = self._choose(games, 'Game to buy')
        if game is None:
            return
        remaining = self.session.balance - (game.get('price') or 0)
        print(f"Price {format_currency(game.get('price'))}, "
              f"remaining balance {format_currency(remaining)}")
        if self._ask('Confirm purchase? (y/n)', 'n').lower() != 'y':
            return
        try:
            self.purchases.buy_game(game)
        except PurchaseError as exc:
            self._log.error("Purchase left partially committed: %s", exc)
            print(f"{Fore.RED}Purchase incomplete: {exc}")
        except ClubError:
            pass

    def show_products(self) -> None:
        products = self.products.list_products()
        user = self.session.current_user
        for i, product in enumerate(products, 1):
            print(f"{Fore.YELLOW}{i}. {render_product(product, user)}")
        product = self._choose(products, 'Product to buy')
        if product is None:
            return
        try:
            quantity = int(self._ask('Quantity', '1'))
        except ValueError:
            print(f"{Fore.RED}Quantity must be a whole number.")
            return
        total = (product.get('price') or 0) * quantity
        print(f"Total {format_currency(total)}, "
              f"remaining balance {format_currency(self.session.balance - total)}")
        if self._ask('Confirm purchase? (y/n)', 'n').lower() != 'y':
            return
        try:
            self.purchases.buy_product(product, quantity)
        except PurchaseError as exc:
            self._log.error("Purchase left partially committed: %s", exc)
            print(f"{Fore.RED}Purchase incomplete: {exc}")
        except ClubError:
            pass

    def show_recharge(self) -> None:
        user = self.session.current_user
        if user is None:
            return
        print("Quick amounts: 25, 50, 100, 200, 500")
        amount = self._ask('Amount')
        print(f"Payment methods: {', '.join(PAYMENT_METHODS)}")
        method = self._ask('Payment method', PAYMENT_METHODS[0])
        try:
            self.recharges.recharge(user['id'], amount, method)
        except ClubError:
            return
        history = self.recharges.member_recharges(user['id'])
        print(f"Total recharged: {format_currency(self.recharges.total(history))}")

    def show_history(self) -> None:
        user = self.session.current_user or {}
        for t in report_service.filter_transactions(
                self.transactions.member_transactions(user.get('id'))):
            print(f"  {render_transaction(t)}")
        for r in self.recharges.member_recharges(user.get('id')):
            print(f"  recharge {format_currency(r.get('amount')):>12} "
                  f"{r.get('paymentMethod', '')} {format_date_time(r.get('date'))}")

    # ------------------------------------------------------------------
    # Admin screens
    # ------------------------------------------------------------------

    def admin_dashboard(self) -> Dict:
        stats = report_service.admin_dashboard(
            self.members.list_members(), self.games.list_games(),
            self.products.list_products(), self.transactions.list_transactions(),
        )
        print(f"\n{Fore.CYAN}{Style.BRIGHT}Admin dashboard")
        print(f"Users: {stats['total_users']} ({stats['active_users']} active)")
        print(f"Games: {stats['total_games']}  Products: {stats['total_products']}")
        print(f"Revenue: {format_currency(stats['total_revenue'])}")
        return stats

    def _admin_catalog(self, title: str, items: List[Dict], render, schema: Dict,
                       fields: List[str], create, update, delete) -> None:
        print(f"\n{Fore.CYAN}{Style.BRIGHT}{title}")
        for i, item in enumerate(items, 1):
            print(f"{Fore.YELLOW}{i}. {render(item)}")
        action = self._ask('(a)dd, (e)dit, (d)elete, blank to go back').lower()
        try:
            if action == 'a':
                data = self._form(schema, fields)
                if data is not None:
                    create(data)
            elif action == 'e':
                item = self._choose(items, 'Item')
                if item is not None:
                    data = self._form(schema, fields, current=item)
                    if data is not None:
                        update(item['id'], {f: data[f] for f in fields if f in data})
            elif action == 'd':
                item = self._choose(items, 'Item')
                if item is not None and self._ask('Delete? (y/n)', 'n').lower() == 'y':
                    delete(item['id'])
        except ClubError:
            pass

    def admin_games(self) -> None:
        self._admin_catalog(
            'Manage games', self.games.list_games(), render_game, GAME_SCHEMA,
            ['name', 'price', 'description', 'genre', 'status'],
            self.games.create_game, self.games.update_game, self.games.delete_game,
        )

    def admin_products(self) -> None:
        self._admin_catalog(
            'Manage products', self.products.list_products(), render_product, PRODUCT_SCHEMA,
            ['name', 'description', 'category', 'tags', 'price', 'stock'],
            self.products.create_product, self.products.update_product,
            self.products.delete_product,
        )

    def admin_members(self) -> None:
        phone = self._ask('Search by phone (blank to list all)')
        if phone:
            try:
                profile = self.members.search_by_phone(phone)
            except ClubError:
                return
            print(render_member(profile.get('member', {})))
            for entry in profile.get('played_history', []):
                print(f"  played {entry.get('game_name')} "
                      f"{format_currency(entry.get('amount'))} {format_date_time(entry.get('date_time'))}")
            return
        self._admin_catalog(
            'Manage members', self.members.list_members(), render_member, MEMBER_SCHEMA,
            ['name', 'phoneNumber', 'email', 'balance', 'isActive'],
            self.members.create_member, self.members.update_member, self.members.delete_member,
        )

    def admin_transactions(self) -> List[Dict]:
        transactions = self.transactions.list_transactions()
        summary = report_service.transaction_summary(transactions)
        print(f"\n{Fore.CYAN}{Style.BRIGHT}All transactions")
        print(f"Revenue {format_currency(summary['total_revenue'])}, "
              f"{summary['total_transactions']} total "
              f"({summary['game_transactions']} game / {summary['product_transactions']} product)")
        kind = self._ask('Filter by type (game/product, blank for all)')
        sort_by = self._ask('Sort (date-desc/date-asc/amount-desc/amount-asc)', 'date-desc')
        rows = report_service.filter_transactions(transactions, kind=kind, sort_by=sort_by)
        for t in rows:
            print(f"  {render_transaction(t)}")
        print(f"{len(rows)} transaction{'s' if len(rows) != 1 else ''} found")
        return rows

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def _menu(self, title: str, options: List[tuple]) -> bool:
        print(f"\n{Fore.CYAN}{Style.BRIGHT}{title}")
        print(f"{Fore.WHITE}{'=' * 40}")
        for key, label, _ in options:
            print(f"{Fore.YELLOW}{key}. {Fore.WHITE}{label}")
        print(f"{Fore.YELLOW}q. {Fore.WHITE}Quit")
        choice = self._ask('\nEnter your choice').lower()
        if choice == 'q':
            return False
        for key, _, action in options:
            if choice == key:
                action()
                return True
        print(f"{Fore.RED}Invalid choice. Please try again.")
        return True

    def interactive_mode(self) -> None:
        """Run menus until the user quits."""
        while True:
            if not self.session.is_authenticated():
                keep_going = self._menu('Gaming Club', [
                    ('1', 'Log in', self.login_screen),
                    ('2', 'Register', self.register_screen),
                ])
            elif self.session.is_admin():
                keep_going = self._menu('Gaming Club - Admin', [
                    ('1', 'Dashboard', self.admin_dashboard),
                    ('2', 'Manage games', self.admin_games),
                    ('3', 'Manage products', self.admin_products),
                    ('4', 'Manage members', self.admin_members),
                    ('5', 'Transactions', self.admin_transactions),
                    ('6', 'Log out', self.session.logout),
                ])
            else:
                keep_going = self._menu('Gaming Club', [
                    ('1', 'Dashboard', self.show_dashboard),
                    ('2', 'Games', self.show_games),
                    ('3', 'Products', self.show_products),
                    ('4', 'Recharge', self.show_recharge),
                    ('5', 'History', self.show_history),
                    ('6', 'Log out', self.session.logout),
                ])
            if not keep_going:
                print(f"\n{Fore.CYAN}Thanks for visiting the Gaming Club!")
                break


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Gaming Club Portal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gameclub                                  # Run in interactive mode
  gameclub --login 9876543210 --role USER   # Log in and exit
  gameclub --games                          # List games and exit
  gameclub --balance                        # Show the session balance
        """
    )
    parser.add_argument('--config', '-c', default='config.json',
                        help='Path to config file (default: config.json)')
    parser.add_argument('--login', metavar='PHONE', help='Log in with this phone number')
    parser.add_argument('--role', default='USER', choices=['USER', 'ADMIN'],
                        help='Role to log in with (default: USER)')
    parser.add_argument('--logout', action='store_true', help='Log out and exit')
    parser.add_argument('--games', action='store_true', help='List games and exit')
    parser.add_argument('--products', action='store_true', help='List products and exit')
    parser.add_argument('--history', action='store_true', help='Show your history and exit')
    parser.add_argument('--balance', action='store_true', help='Show your balance and exit')
    parser.add_argument('--log-level', help='Override the configured log level')
    args = parser.parse_args(argv)

    load_dotenv()
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"{Fore.RED}{e}")
        return 1
    if args.log_level:
        config['log_level'] = args.log_level

    portal = GameClubPortal(config)
    one_shot = False
    try:
        if args.logout:
            one_shot = True
            portal.session.logout()
        if args.login:
            one_shot = True
            portal.session.login(args.login, args.role)
        if args.games:
            one_shot = True
            for game in portal.games.list_games():
                print(render_game(game, portal.session.current_user))
        if args.products:
            one_shot = True
            for product in portal.products.list_products():
                print(render_product(product, portal.session.current_user))
        if args.history:
            one_shot = True
            portal.show_history()
        if args.balance:
            one_shot = True
            print(format_currency(portal.session.balance))
    except ClubError:
        return 1
    if not one_shot:
        portal.interactive_mode()
    return 0


if __name__ == '__main__':
    sys.exit(main())
