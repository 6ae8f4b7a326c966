"""Services package: expose all concrete services from one import."""
from .identity_service import IdentityProvider, MockIdentityProvider
from .session_service import SessionService
from .game_service import GameService
from .product_service import ProductService
from .member_service import MemberService
from .recharge_service import RechargeService
from .transaction_service import TransactionService, transaction_kind
from .purchase_service import (
    GamePurchase, ProductPurchase, PurchaseService,
    can_purchase_game, can_purchase_product,
)

__all__ = [
    'IdentityProvider',
    'MockIdentityProvider',
    'SessionService',
    'GameService',
    'ProductService',
    'MemberService',
    'RechargeService',
    'TransactionService',
    'transaction_kind',
    'GamePurchase',
    'ProductPurchase',
    'PurchaseService',
    'can_purchase_game',
    'can_purchase_product',
]
