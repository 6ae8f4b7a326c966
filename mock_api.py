#!/usr/bin/env python3
"""
mock_api.py
===========
In-memory stand-in for the gaming club REST backend, served by Flask under
``/api``.  The portal talks to it when ``use_mock_api`` is enabled, and the
test-suite routes HTTP calls to it instead of a real server.

Behaviour mirrors what the portal expects from the real backend:

* ``/members``, ``/games``, ``/products``: full CRUD; ``PUT`` merges the
  body into the stored record.
* ``/recharges``: ``POST`` appends a recharge *and* credits the member's
  balance.
* ``/transactions``: ``POST`` appends a record only; the client debits the
  balance itself.
* ``/recharges/member/<id>``, ``/transactions/member/<id>``,
  ``POST /members/search`` ``{"phone": ...}``.

Errors are returned as ``{"message": ...}`` with 400 (bad body) or 404
(unknown id / phone).

Run it with::

    python3 mock_api.py --port 5000
"""

import argparse
import copy
import logging
import math
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from flask import Blueprint, Flask, jsonify, request

logger = logging.getLogger('gameclub.mock_api')

DEMO_MEMBERS = [
    {'id': '1', 'name': 'Admin User', 'phoneNumber': '1234567890',
     'email': 'admin@gamingclub.com', 'balance': 10000, 'isActive': True},
    {'id': '2', 'name': 'John Gamer', 'phoneNumber': '9876543210',
     'email': 'john@gamingclub.com', 'balance': 500, 'isActive': True},
    {'id': '3', 'name': 'Jane Player', 'phoneNumber': '5555555555',
     'email': 'jane@gamingclub.com', 'balance': 250, 'isActive': True},
]

DEMO_GAMES = [
    {'id': '1', 'name': 'Neon Racer', 'price': 50, 'genre': 'racing', 'status': 'active',
     'description': 'Arcade street racing through a neon-lit city.'},
    {'id': '2', 'name': 'Dungeon Depths', 'price': 120, 'genre': 'rpg', 'status': 'active',
     'description': 'Turn-based dungeon crawler with permadeath.'},
    {'id': '3', 'name': 'Star Tactics', 'price': 80, 'genre': 'strategy',
     'status': 'coming_soon', 'description': 'Fleet command across a hostile galaxy.'},
    {'id': '4', 'name': 'Retro Brawl', 'price': 30, 'genre': 'fighting', 'status': 'inactive',
     'description': 'Pixel-art fighting game for up to four players.'},
]

DEMO_PRODUCTS = [
    {'id': '1', 'name': 'Pro Controller', 'price': 60, 'stock': 3, 'category': 'accessories',
     'tags': 'controller,wireless', 'description': 'Wireless controller with rumble.'},
    {'id': '2', 'name': 'Club Hoodie', 'price': 45, 'stock': 12, 'category': 'merchandise',
     'tags': 'apparel', 'description': 'Black hoodie with the club logo.'},
    {'id': '3', 'name': 'Gift Card 50', 'price': 50, 'stock': 0, 'category': 'gift_cards',
     'tags': 'gift', 'description': 'Prepaid club credit worth fifty dollars.'},
]

CRUD_RESOURCES = {
    'members': 'Member',
    'games': 'Game',
    'products': 'Product',
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class MockStore:
    """Collections of JSON records keyed by string id.

    All access goes through the module lock because Flask's development
    server handles requests on multiple threads.
    """

    COLLECTIONS = ('members', 'games', 'products', 'recharges', 'transactions')

    def __init__(self, seed: bool = True) -> None:
        self.reset(seed)

    def reset(self, seed: bool = True) -> None:
        self.data: Dict[str, Dict[str, Dict]] = {name: {} for name in self.COLLECTIONS}
        self._next_id: Dict[str, int] = {name: 1 for name in self.COLLECTIONS}
        if seed:
            joined = _now()
            for member in DEMO_MEMBERS:
                self.insert('members', dict(member, joiningDate=joined))
            for game in DEMO_GAMES:
                self.insert('games', game)
            for product in DEMO_PRODUCTS:
                self.insert('products', product)

    def insert(self, collection: str, record: Dict) -> Dict:
        record = copy.deepcopy(record)
        if not record.get('id'):
            record['id'] = str(self._next_id[collection])
        self.data[collection][record['id']] = record
        numeric = int(record['id']) if str(record['id']).isdigit() else 0
        self._next_id[collection] = max(self._next_id[collection], numeric + 1)
        return copy.deepcopy(record)

    def all(self, collection: str) -> List[Dict]:
        return [copy.deepcopy(r) for r in self.data[collection].values()]

    def get(self, collection: str, record_id: str) -> Optional[Dict]:
        record = self.data[collection].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def update(self, collection: str, record_id: str, changes: Dict) -> Optional[Dict]:
        record = self.data[collection].get(record_id)
        if record is None:
            return None
        changes = {k: v for k, v in changes.items() if k != 'id'}
        record.update(copy.deepcopy(changes))
        return copy.deepcopy(record)

    def delete(self, collection: str, record_id: str) -> bool:
        return self.data[collection].pop(record_id, None) is not None

    def where(self, collection: str, **criteria) -> List[Dict]:
        return [
            copy.deepcopy(r) for r in self.data[collection].values()
            if all(str(r.get(k)) == str(v) for k, v in criteria.items())
        ]


store = MockStore()
store_lock = threading.Lock()

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _error(message: str, status: int):
    return jsonify({'message': message}), status


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


# ---------------------------------------------------------------------------
# Generic CRUD for members, games and products
# ---------------------------------------------------------------------------

def _make_collection_view(collection: str, label: str):
    def view():
        if request.method == 'GET':
            with store_lock:
                return jsonify(store.all(collection))
        data = _json_body()
        if data is None:
            return _error('Request body must be a JSON object', 400)
        if collection == 'members':
            data.setdefault('balance', 0)
            data.setdefault('isActive', True)
            data.setdefault('joiningDate', _now())
        with store_lock:
            created = store.insert(collection, dict(data, id=None))
        logger.info("Created %s %s", label, created['id'])
        return jsonify(created), 201
    view.__name__ = f'{collection}_collection'
    return view


def _make_item_view(collection: str, label: str):
    def view(item_id: str):
        if request.method == 'GET':
            with store_lock:
                record = store.get(collection, item_id)
            if record is None:
                return _error(f'{label} not found', 404)
            return jsonify(record)
        if request.method == 'PUT':
            data = _json_body()
            if data is None:
                return _error('Request body must be a JSON object', 400)
            with store_lock:
                record = store.update(collection, item_id, data)
            if record is None:
                return _error(f'{label} not found', 404)
            return jsonify(record)
        with store_lock:
            removed = store.delete(collection, item_id)
        if not removed:
            return _error(f'{label} not found', 404)
        return '', 204
    view.__name__ = f'{collection}_item'
    return view


for _collection, _label in CRUD_RESOURCES.items():
    api_bp.add_url_rule(f'/{_collection}', view_func=_make_collection_view(_collection, _label),
                        methods=['GET', 'POST'])
    api_bp.add_url_rule(f'/{_collection}/<item_id>', view_func=_make_item_view(_collection, _label),
                        methods=['GET', 'PUT', 'DELETE'])


@api_bp.route('/members/search', methods=['POST'])
def search_member():
    """Return ``{member, recharge_history, games, played_history}`` for a phone number."""
    data = _json_body()
    if data is None or not data.get('phone'):
        return _error('phone is required', 400)
    with store_lock:
        matches = store.where('members', phoneNumber=data['phone'])
        if not matches:
            return _error('Member not found', 404)
        member = matches[0]
        recharges = store.where('recharges', memberId=member['id'])
        transactions = store.where('transactions', memberId=member['id'])
        games = {g['id']: g for g in store.all('games')}
    played = [t for t in transactions if t.get('gameId')]
    owned = [games[t['gameId']] for t in played if t['gameId'] in games]
    return jsonify({
        'member': member,
        'recharge_history': [
            {'id': r['id'], 'amount': r['amount'], 'dateTime': r.get('date')}
            for r in recharges
        ],
        'games': [
            {'id': g['id'], 'name': g['name'], 'price': g['price'],
             'description': g.get('description', '')}
            for g in owned
        ],
        'played_history': [
            {'id': t['id'], 'date_time': t.get('date'),
             'game_name': games.get(t['gameId'], {}).get('name', ''),
             'amount': t['amount']}
            for t in played
        ],
    })


# ---------------------------------------------------------------------------
# Recharges
# ---------------------------------------------------------------------------

@api_bp.route('/recharges', methods=['GET'])
def list_recharges():
    with store_lock:
        return jsonify(store.all('recharges'))


@api_bp.route('/recharges', methods=['POST'])
def create_recharge():
    """Append a recharge and credit the member's balance."""
    data = _json_body()
    if data is None:
        return _error('Request body must be a JSON object', 400)
    try:
        amount = float(data.get('amount'))
    except (TypeError, ValueError):
        return _error('amount must be a number', 400)
    if not math.isfinite(amount):
        return _error('amount must be a number', 400)
    member_id = str(data.get('memberId', ''))
    with store_lock:
        member = store.get('members', member_id)
        if member is None:
            return _error('Member not found', 404)
        store.update('members', member_id, {'balance': (member.get('balance') or 0) + amount})
        record = store.insert('recharges', {
            'memberId': member_id,
            'amount': amount,
            'paymentMethod': data.get('paymentMethod', ''),
            'date': data.get('date') or _now(),
        })
    return jsonify(record), 201


@api_bp.route('/recharges/member/<member_id>', methods=['GET'])
def member_recharges(member_id: str):
    with store_lock:
        return jsonify(store.where('recharges', memberId=member_id))


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

@api_bp.route('/transactions', methods=['GET'])
def list_transactions():
    with store_lock:
        return jsonify(store.all('transactions'))


@api_bp.route('/transactions', methods=['POST'])
def create_transaction():
    """Append a transaction record (balance and stock are not touched)."""
    data = _json_body()
    if data is None:
        return _error('Request body must be a JSON object', 400)
    if not data.get('memberId'):
        return _error('memberId is required', 400)
    record = dict(data, id=None)
    record.setdefault('date', _now())
    record.setdefault('status', 'COMPLETED')
    with store_lock:
        created = store.insert('transactions', record)
    return jsonify(created), 201


@api_bp.route('/transactions/member/<member_id>', methods=['GET'])
def member_transactions(member_id: str):
    with store_lock:
        return jsonify(store.where('transactions', memberId=member_id))


app = Flask(__name__)
app.register_blueprint(api_bp)


def main():
    parser = argparse.ArgumentParser(description='Gaming club mock REST API')
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=5000)
    parser.add_argument('--empty', action='store_true', help='Start without demo data')
    parser.add_argument('--debug', action='store_true')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(name)s: %(message)s')
    if args.empty:
        with store_lock:
            store.reset(seed=False)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
