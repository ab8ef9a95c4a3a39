# scan_hub/services/products.py
from __future__ import annotations
from typing import List, Optional
import logging, threading

from scan_hub.errors import ProductNotFoundError
from scan_hub.models import Product, ProductAlias, now_ms
from scan_hub.repositories import ProductRepository

logger = logging.getLogger(__name__)


class ProductService:
    """Product directory: CRUD plus lookup of the product a scanned group key belongs to."""

    def __init__(self, repository: ProductRepository):
        self.repository = repository
        self._lock = threading.RLock()
        self._products: Optional[List[Product]] = None

    def _all(self) -> List[Product]:
        if self._products is None:
            self._products = self.repository.load_all()
        return self._products

    def _persist(self) -> None:
        self.repository.save_all(self._products)

    def list_all(self) -> List[Product]:
        with self._lock:
            return sorted(self._all(), key=lambda p: p.name.casefold())

    def get(self, product_id: str) -> Product:
        with self._lock:
            for p in self._all():
                if p.id == product_id:
                    return p
        raise ProductNotFoundError(product_id)

    def create(self, name: str, aliases: Optional[List[ProductAlias]] = None) -> Product:
        product = self.repository.new_product(name)
        if aliases:
            product = product.model_copy(update={"aliases": list(aliases)})
        with self._lock:
            self._all().append(product)
            self._persist()
        logger.info("Product created: %s (%s)", product.name, product.id)
        return product

    def update(self, product_id: str, name: str, aliases: List[ProductAlias]) -> Product:
        with self._lock:
            products = self._all()
            for idx, p in enumerate(products):
                if p.id == product_id:
                    products[idx] = p.model_copy(update={"name": name, "aliases": list(aliases), "updated_at": now_ms()})
                    self._persist()
                    return products[idx]
        raise ProductNotFoundError(product_id)

    def delete(self, product_id: str) -> None:
        with self._lock:
            products = self._all()
            remaining = [p for p in products if p.id != product_id]
            if len(remaining) == len(products):
                raise ProductNotFoundError(product_id)
            self._products = remaining
            self._persist()
        logger.info("Product deleted: %s", product_id)

    def resolve(self, parse_type_id: str, group_key: str, code: Optional[str] = None) -> Optional[Product]:
        """First product with an alias for (parse type, group key); alias prefixes narrow it by code."""
        with self._lock:
            for p in self._all():
                if any(a.matches(parse_type_id, group_key, code) for a in p.aliases):
                    return p
        return None
