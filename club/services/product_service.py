"""Product catalog queries and admin mutations."""
from typing import Dict, List, Optional

from ..validators import PRODUCT_SCHEMA
from .base import ResourceService


class ProductService(ResourceService):
    """Products resource (cache root ``'products'``, list stale after 5 minutes)."""

    resource = 'products'
    label = 'Product'
    schema = PRODUCT_SCHEMA

    def list_products(self) -> List[Dict]:
        return self._list(self._client.get_products)

    def get_product(self, product_id: Optional[str]) -> Optional[Dict]:
        return self._get(product_id, self._client.get_product)

    def create_product(self, product: Dict) -> Dict:
        return self._create(product, self._client.create_product)

    def update_product(self, product_id: str, changes: Dict) -> Dict:
        return self._update(product_id, changes, self._client.update_product)

    def delete_product(self, product_id: str) -> None:
        self._delete(product_id, self._client.delete_product)

    def in_stock(self) -> List[Dict]:
        return [p for p in self.list_products() if (p.get('stock') or 0) > 0]

    @staticmethod
    def split_tags(product: Dict) -> List[str]:
        """Return the product's comma-separated ``tags`` as a clean list."""
        return [t.strip() for t in (product.get('tags') or '').split(',') if t.strip()]
