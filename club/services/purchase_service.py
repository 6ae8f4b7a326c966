"""Game and product purchases.

A purchase is not one server-side operation: it is a chain of independent
REST calls issued one after another.

Game purchase::

    1. POST /transactions        {memberId, gameId, type: "game", amount, date}
    2. GET  /members/<id>  then  PUT /members/<id>  balance -= amount

Product purchase::

    1. POST /transactions        {memberId, productId, gameId: "", type: "product", ...}
    2. GET  /members/<id>  then  PUT /members/<id>  balance -= amount
    3. GET  /products/<id> then  PUT /products/<id> stock -= quantity

There is no rollback.  If a later step fails the earlier ones stay
committed and :class:`~club.errors.PurchaseError` reports which ones did.
Concurrent buyers are not coordinated either: two purchases that both pass
the client-side stock check can overdraw stock on the backend.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

from api_client import ApiClient

from ..errors import ApiError, PurchaseError, ValidationError
from ..formatters import utc_now_iso
from ..notifications import Notifier
from ..query_cache import QueryCache
from .session_service import SessionService
from .transaction_service import GAME, PRODUCT


@dataclass(frozen=True)
class GamePurchase:
    member_id: str
    game_id: str
    amount: float
    kind: str = field(default=GAME, init=False)


@dataclass(frozen=True)
class ProductPurchase:
    member_id: str
    product_id: str
    quantity: int
    amount: float
    kind: str = field(default=PRODUCT, init=False)


Purchase = Union[GamePurchase, ProductPurchase]


# ---------------------------------------------------------------------------
# Client-side eligibility checks
# ---------------------------------------------------------------------------

def game_purchase_problems(user: Optional[Dict], game: Dict) -> Dict[str, str]:
    """Return ``{field: reason}`` preventing *user* from buying *game* (empty if allowed)."""
    problems: Dict[str, str] = {}
    if user is None:
        problems['user'] = 'Please log in to make a purchase'
    if game.get('status') != 'active':
        problems['status'] = 'This game is not available for purchase'
    price = game.get('price') or 0
    if user is not None and (user.get('balance') or 0) < price:
        problems['balance'] = 'Insufficient balance'
    return problems


def product_purchase_problems(user: Optional[Dict], product: Dict,
                              quantity: int) -> Dict[str, str]:
    """Return ``{field: reason}`` preventing *user* from buying *quantity* of *product*."""
    problems: Dict[str, str] = {}
    stock = product.get('stock') or 0
    if user is None:
        problems['user'] = 'Please log in to make a purchase'
    if stock <= 0:
        problems['stock'] = 'Out of stock'
    elif quantity > stock:
        problems['quantity'] = f'Only {stock} left in stock'
    if quantity < 1:
        problems['quantity'] = 'Quantity must be at least 1'
    amount = (product.get('price') or 0) * quantity
    if user is not None and (user.get('balance') or 0) < amount:
        problems['balance'] = 'Insufficient balance'
    return problems


def can_purchase_game(user: Optional[Dict], game: Dict) -> bool:
    return not game_purchase_problems(user, game)


def can_purchase_product(user: Optional[Dict], product: Dict, quantity: int = 1) -> bool:
    return not product_purchase_problems(user, product, quantity)


class PurchaseService:
    """Runs purchase chains and keeps the cache and session in step.

    Args:
        client:   HTTP client.
        cache:    Query cache whose transaction/member/product keys are
                  invalidated after a purchase.
        notifier: Receives the success message.
        session:  When given, :meth:`buy_game` / :meth:`buy_product` act for
                  the logged-in user and lower the session balance.
        clock:    Returns the ISO timestamp stored on new transactions.
    """

    def __init__(self, client: ApiClient, cache: QueryCache,
                 notifier: Optional[Notifier] = None,
                 session: Optional[SessionService] = None,
                 clock: Callable[[], str] = utc_now_iso) -> None:
        self._client = client
        self._cache = cache
        self._notifier = notifier or Notifier()
        self._session = session
        self._clock = clock
        self._log = logging.getLogger('gameclub.purchase')

    # ------------------------------------------------------------------
    # Checked entry points (used by the portal screens)
    # ------------------------------------------------------------------

    def buy_game(self, game: Dict) -> Dict:
        """Buy *game* for the logged-in user.

        Raises:
            ValidationError: the game is not active, nobody is logged in or
                the balance is too low; nothing is sent.
            ApiError / PurchaseError: see :meth:`purchase_game`.
        """
        user = self._session.current_user if self._session else None
        self._check(game_purchase_problems(user, game))
        amount = game.get('price') or 0
        transaction = self.purchase_game(GamePurchase(str(user['id']), str(game['id']), amount))
        self._session.update_balance(self._session.balance - amount)
        return transaction

    def buy_product(self, product: Dict, quantity: int = 1) -> Dict:
        """Buy *quantity* units of *product* for the logged-in user.

        Raises:
            ValidationError: out of stock, quantity above stock, nobody logged
                in or insufficient balance; nothing is sent.
            ApiError / PurchaseError: see :meth:`purchase_product`.
        """
        user = self._session.current_user if self._session else None
        self._check(product_purchase_problems(user, product, quantity))
        amount = (product.get('price') or 0) * quantity
        transaction = self.purchase_product(
            ProductPurchase(str(user['id']), str(product['id']), quantity, amount)
        )
        self._session.update_balance(self._session.balance - amount)
        return transaction

    # ------------------------------------------------------------------
    # Raw chains
    # ------------------------------------------------------------------

    def purchase(self, request: Purchase) -> Dict:
        if isinstance(request, GamePurchase):
            return self.purchase_game(request)
        return self.purchase_product(request)

    def purchase_game(self, request: GamePurchase) -> Dict:
        """Record the transaction, then debit the member.

        Raises:
            ApiError: creating the transaction failed (nothing committed).
            PurchaseError: the debit failed after the transaction was created.
        """
        transaction = self._client.create_transaction({
            'memberId': request.member_id,
            'gameId': request.game_id,
            'type': GAME,
            'amount': request.amount,
            'date': self._clock(),
        })
        completed = ['transaction']
        try:
            self._debit(request.member_id, request.amount)
            completed.append('balance')
        except ApiError as exc:
            self._partial(request, exc, completed, transaction)
        self._invalidate(request)
        self._notifier.success('Game purchased successfully')
        return transaction

    def purchase_product(self, request: ProductPurchase) -> Dict:
        """Record the transaction, debit the member, then decrement stock.

        Raises:
            ApiError: creating the transaction failed (nothing committed).
            PurchaseError: a later step failed after earlier ones committed.
        """
        transaction = self._client.create_transaction({
            'memberId': request.member_id,
            'productId': request.product_id,
            'gameId': '',
            'type': PRODUCT,
            'quantity': request.quantity,
            'amount': request.amount,
            'date': self._clock(),
        })
        completed = ['transaction']
        try:
            self._debit(request.member_id, request.amount)
            completed.append('balance')
            self._decrement_stock(request.product_id, request.quantity)
            completed.append('stock')
        except ApiError as exc:
            self._partial(request, exc, completed, transaction)
        self._invalidate(request)
        self._notifier.success('Product purchased successfully')
        return transaction

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _debit(self, member_id: str, amount: float) -> None:
        member = self._client.get_member(member_id)
        member = dict(member, balance=(member.get('balance') or 0) - amount)
        self._client.update_member(member_id, member)

    def _decrement_stock(self, product_id: str, quantity: int) -> None:
        product = self._client.get_product(product_id)
        product = dict(product, stock=(product.get('stock') or 0) - quantity)
        self._client.update_product(product_id, product)

    def _invalidate(self, request: Purchase) -> None:
        self._cache.invalidate(('transactions',))
        self._cache.invalidate(('transactions', 'member', request.member_id))
        self._cache.invalidate(('members', request.member_id))
        if request.kind == PRODUCT:
            self._cache.invalidate(('products',))

    def _partial(self, request: Purchase, exc: ApiError,
                 completed: List[str], transaction: Dict) -> None:
        self._log.warning(
            "%s purchase for member %s failed after committing %s: %s",
            request.kind, request.member_id, ', '.join(completed), exc.message,
        )
        self._invalidate(request)
        raise PurchaseError(exc, completed, transaction) from exc

    def _check(self, problems: Dict[str, str]) -> None:
        if problems:
            error = ValidationError(problems)
            self._notifier.error(error.message)
            raise error
