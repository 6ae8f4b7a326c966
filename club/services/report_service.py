"""Aggregates for the dashboard and the admin transaction screen."""
from typing import Dict, List, Optional

from ..formatters import parse_datetime
from .transaction_service import GAME, PRODUCT, transaction_kind

SORT_KEYS = ('date-desc', 'date-asc', 'amount-desc', 'amount-asc')
STATUSES = ('COMPLETED', 'PENDING', 'FAILED')


def _timestamp(transaction: Dict) -> float:
    dt = parse_datetime(transaction.get('date'))
    return dt.timestamp() if dt is not None else 0.0


def filter_transactions(transactions: List[Dict], search: str = '',
                        kind: str = '', status: str = '',
                        sort_by: str = 'date-desc') -> List[Dict]:
    """Filter by id substring, purchase kind and status, then sort.

    Args:
        search:  Case-insensitive substring of the transaction id.
        kind:    ``'game'``, ``'product'`` or ``''`` for both.
        status:  Exact status or ``''`` for any.
        sort_by: One of :data:`SORT_KEYS`; unknown values keep input order.
    """
    needle = search.lower()
    result = [
        t for t in transactions
        if needle in str(t.get('id', '')).lower()
        and (not kind or transaction_kind(t) == kind)
        and (not status or t.get('status') == status)
    ]
    if sort_by == 'date-desc':
        result.sort(key=_timestamp, reverse=True)
    elif sort_by == 'date-asc':
        result.sort(key=_timestamp)
    elif sort_by == 'amount-desc':
        result.sort(key=lambda t: t.get('amount') or 0, reverse=True)
    elif sort_by == 'amount-asc':
        result.sort(key=lambda t: t.get('amount') or 0)
    return result


def transaction_summary(transactions: List[Dict]) -> Dict:
    """Totals shown above the admin transaction table."""
    by_status = {s: 0 for s in STATUSES}
    for t in transactions:
        if t.get('status') in by_status:
            by_status[t['status']] += 1
    return {
        'total_revenue': round(sum(t.get('amount') or 0 for t in transactions), 2),
        'total_transactions': len(transactions),
        'game_transactions': sum(1 for t in transactions if transaction_kind(t) == GAME),
        'product_transactions': sum(1 for t in transactions if transaction_kind(t) == PRODUCT),
        'completed': by_status['COMPLETED'],
        'pending': by_status['PENDING'],
        'failed': by_status['FAILED'],
    }


def member_dashboard(transactions: List[Dict], recharges: List[Dict],
                     balance: float, recent: int = 5) -> Dict:
    """Per-member figures: balance, totals spent/recharged and recent activity."""
    return {
        'balance': balance,
        'total_spent': round(sum(t.get('amount') or 0 for t in transactions), 2),
        'total_recharged': round(sum(r.get('amount') or 0 for r in recharges), 2),
        'transaction_count': len(transactions),
        'recent_transactions': filter_transactions(transactions)[:recent],
    }


def admin_dashboard(members: List[Dict], games: List[Dict], products: List[Dict],
                    transactions: List[Dict], recent: Optional[int] = 5) -> Dict:
    return {
        'total_users': len(members),
        'active_users': sum(1 for m in members if m.get('isActive')),
        'total_games': len(games),
        'total_products': len(products),
        'total_revenue': round(sum(t.get('amount') or 0 for t in transactions), 2),
        'recent_transactions': filter_transactions(transactions)[:recent],
    }
