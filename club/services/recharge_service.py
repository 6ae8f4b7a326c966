"""Balance top-ups."""
from typing import Dict, List, Optional

from ..query_cache import MINUTE
from ..validators import RECHARGE_SCHEMA
from .base import ResourceService
from .session_service import SessionService


class RechargeService(ResourceService):
    """Recharges resource (cache root ``'recharges'``, stale after 2 minutes).

    A recharge invalidates the global list, the member's own list and the
    member's cache entry.  When *session* is given and the recharged member
    is the logged-in user, the session balance is raised by the amount.
    """

    resource = 'recharges'
    label = 'Recharge'
    schema = RECHARGE_SCHEMA
    LIST_STALE_TIME = 2 * MINUTE

    def __init__(self, client, cache, notifier=None,
                 session: Optional[SessionService] = None) -> None:
        super().__init__(client, cache, notifier)
        self._session = session

    def list_recharges(self) -> List[Dict]:
        return self._list(self._client.get_recharges)

    def member_recharges(self, member_id: Optional[str]) -> List[Dict]:
        if not member_id:
            return []
        return self._query(
            ('recharges', 'member', member_id),
            lambda: self._client.get_recharges_by_member(member_id),
            self.LIST_STALE_TIME,
        )

    def recharge(self, member_id: str, amount, payment_method: str) -> Dict:
        """Top up *member_id* by *amount* via *payment_method*.

        Raises:
            ValidationError: amount outside 1..10000 or unknown payment method
                (no request is sent).
            ApiError: the backend rejected the recharge.
        """
        form = self._clean({'amount': amount, 'paymentMethod': payment_method})
        payload = {
            'memberId': member_id,
            'amount': form['amount'],
            'paymentMethod': form['paymentMethod'],
        }
        record = self._mutate(
            lambda: self._client.create_recharge(payload),
            invalidate=[
                ('recharges',),
                ('recharges', 'member', member_id),
                ('members', member_id),
            ],
            success='Account recharged successfully',
        )
        user = self._session.current_user if self._session else None
        if user is not None and str(user.get('id')) == str(member_id):
            self._session.update_balance(self._session.balance + form['amount'])
        return record

    @staticmethod
    def total(recharges: List[Dict]) -> float:
        return sum(r.get('amount') or 0 for r in recharges)
