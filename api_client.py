"""
api_client.py
=============
HTTP client for the gaming club REST API.

Every request goes through :meth:`ApiClient._request`, which

* attaches ``Authorization: Bearer <token>`` when the token source returns a
  token (the token is read from the persisted session on every call, so a
  login or logout takes effect immediately),
* applies a fixed per-request timeout (10 seconds by default), and
* turns any transport failure or non-2xx response into a single
  :class:`~club.errors.ApiError` (``message``, ``status``, ``details``), which
  is also pushed to the notifier as an error toast before being raised.

Nothing is retried.

Resources
---------
``/members``, ``/games``, ``/products``, ``/recharges``, ``/transactions``
with collection ``GET``/``POST`` and item ``GET``/``PUT``/``DELETE``, plus
``/recharges/member/<id>``, ``/transactions/member/<id>`` and
``POST /members/search``.
"""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Callable, Dict, List, Optional

import requests

from club.errors import ApiError
from club.notifications import Notifier

logger = logging.getLogger('gameclub.api')

DEFAULT_BASE_URL = 'http://localhost:8080'
DEFAULT_TIMEOUT = 10  # seconds


def _quote(value: Any) -> str:
    return urllib.parse.quote(str(value), safe='')


class ApiClient:
    """Thin wrapper around a :class:`requests.Session` bound to one base URL.

    Args:
        base_url:     API root, e.g. ``http://localhost:8080``.
        timeout:      Overall per-request deadline in seconds.
        token_source: Zero-argument callable returning the current bearer
                      token or ``None``.
        notifier:     Receives an error message for every failed request.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 token_source: Optional[Callable[[], Optional[str]]] = None,
                 notifier: Optional[Notifier] = None) -> None:
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._token_source = token_source
        self._notifier = notifier
        self.session = requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        token = self._token_source() if self._token_source else None
        if token:
            return {'Authorization': f'Bearer {token}'}
        return {}

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout,
            )
        except requests.Timeout:
            raise self._fail(ApiError(f"timeout of {int(self.timeout * 1000)}ms exceeded"))
        except requests.RequestException as exc:
            raise self._fail(ApiError(str(exc) or 'An error occurred'))

        details = self._decode(resp)
        if not 200 <= resp.status_code < 300:
            message = details.get('message') if isinstance(details, dict) else None
            raise self._fail(ApiError(
                message or f"Request failed with status code {resp.status_code}",
                resp.status_code,
                details,
            ))
        return details

    @staticmethod
    def _decode(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    def _fail(self, error: ApiError) -> ApiError:
        logger.warning("API error %s: %s", error.status, error.message)
        if self._notifier is not None:
            self._notifier.error(error.message)
        return error

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def get_members(self) -> List[Dict]:
        return self._request('GET', '/members')

    def get_member(self, member_id: str) -> Dict:
        return self._request('GET', f'/members/{_quote(member_id)}')

    def create_member(self, member: Dict) -> Dict:
        return self._request('POST', '/members', member)

    def update_member(self, member_id: str, member: Dict) -> Dict:
        return self._request('PUT', f'/members/{_quote(member_id)}', member)

    def delete_member(self, member_id: str) -> None:
        self._request('DELETE', f'/members/{_quote(member_id)}')

    def search_member_by_phone(self, phone: str) -> Dict:
        """Return the composite profile (member, recharge and played history)."""
        return self._request('POST', '/members/search', {'phone': phone})

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------

    def get_games(self) -> List[Dict]:
        return self._request('GET', '/games')

    def get_game(self, game_id: str) -> Dict:
        return self._request('GET', f'/games/{_quote(game_id)}')

    def create_game(self, game: Dict) -> Dict:
        return self._request('POST', '/games', game)

    def update_game(self, game_id: str, game: Dict) -> Dict:
        return self._request('PUT', f'/games/{_quote(game_id)}', game)

    def delete_game(self, game_id: str) -> None:
        self._request('DELETE', f'/games/{_quote(game_id)}')

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def get_products(self) -> List[Dict]:
        return self._request('GET', '/products')

    def get_product(self, product_id: str) -> Dict:
        return self._request('GET', f'/products/{_quote(product_id)}')

    def create_product(self, product: Dict) -> Dict:
        return self._request('POST', '/products', product)

    def update_product(self, product_id: str, product: Dict) -> Dict:
        return self._request('PUT', f'/products/{_quote(product_id)}', product)

    def delete_product(self, product_id: str) -> None:
        self._request('DELETE', f'/products/{_quote(product_id)}')

    # ------------------------------------------------------------------
    # Recharges
    # ------------------------------------------------------------------

    def get_recharges(self) -> List[Dict]:
        return self._request('GET', '/recharges')

    def get_recharges_by_member(self, member_id: str) -> List[Dict]:
        return self._request('GET', f'/recharges/member/{_quote(member_id)}')

    def create_recharge(self, recharge: Dict) -> Dict:
        return self._request('POST', '/recharges', recharge)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def get_transactions(self) -> List[Dict]:
        return self._request('GET', '/transactions')

    def get_transactions_by_member(self, member_id: str) -> List[Dict]:
        return self._request('GET', f'/transactions/member/{_quote(member_id)}')

    def create_transaction(self, transaction: Dict) -> Dict:
        return self._request('POST', '/transactions', transaction)
