"""Transaction history queries."""
from typing import Dict, List, Optional

from ..query_cache import MINUTE
from .base import ResourceService

GAME = 'game'
PRODUCT = 'product'


def transaction_kind(transaction: Dict) -> str:
    """Return ``'game'`` or ``'product'`` for *transaction*.

    Records carry an explicit ``type``; older records without one are
    classified by ``gameId`` (empty or missing means a product purchase).
    """
    kind = transaction.get('type')
    if kind in (GAME, PRODUCT):
        return kind
    return GAME if transaction.get('gameId') else PRODUCT


class TransactionService(ResourceService):
    """Transactions resource (cache root ``'transactions'``, stale after 2 minutes)."""

    resource = 'transactions'
    label = 'Transaction'
    LIST_STALE_TIME = 2 * MINUTE

    def list_transactions(self) -> List[Dict]:
        return self._list(self._client.get_transactions)

    def member_transactions(self, member_id: Optional[str]) -> List[Dict]:
        if not member_id:
            return []
        return self._query(
            ('transactions', 'member', member_id),
            lambda: self._client.get_transactions_by_member(member_id),
            self.LIST_STALE_TIME,
        )

    def create_transaction(self, transaction: Dict) -> Dict:
        return self._mutate(
            lambda: self._client.create_transaction(transaction),
            invalidate=[('transactions',)],
            success='Transaction created successfully',
        )
