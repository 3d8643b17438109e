"""
Repository contracts for products, categories and audit logs, with
in-memory implementations.

The production document store lives outside this package; anything that
satisfies these protocols can be passed to ``create_dispatcher``.
"""
from collections import Counter
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Tuple

from .models import AuditLog, Category, Product


class ProductRepository(Protocol):
    async def get_by_id(self, product_id: str) -> Optional[Product]: ...
    async def get_page(self, page: int, page_size: int, category_id: Optional[str] = None) -> Tuple[List[Product], int]: ...
    async def search_by_name(self, name: str) -> List[Product]: ...
    async def get_low_stock(self) -> List[Product]: ...
    async def get_recent(self, count: int) -> List[Product]: ...
    async def create(self, product: Product) -> Product: ...
    async def update(self, product: Product) -> None: ...
    async def delete(self, product_id: str) -> bool: ...
    async def total_count(self) -> int: ...
    async def total_stock_value(self) -> Decimal: ...
    async def count_by_category(self) -> Dict[str, int]: ...


class CategoryRepository(Protocol):
    async def get_by_id(self, category_id: str) -> Optional[Category]: ...
    async def get_all(self) -> List[Category]: ...
    async def create(self, category: Category) -> Category: ...
    async def update(self, category: Category) -> None: ...
    async def delete(self, category_id: str) -> bool: ...


class AuditLogRepository(Protocol):
    async def add(self, entry: AuditLog) -> None: ...
    async def get_recent(self, count: int) -> List[AuditLog]: ...


class InMemoryProductRepository:
    def __init__(self):
        self._products: Dict[str, Product] = {}

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    async def get_page(self, page: int, page_size: int, category_id: Optional[str] = None) -> Tuple[List[Product], int]:
        products = sorted(self._products.values(), key=lambda p: (p.name.lower(), p.id))
        if category_id is not None:
            products = [p for p in products if p.category_id == category_id]
        start = (page - 1) * page_size
        return products[start:start + page_size], len(products)

    async def search_by_name(self, name: str) -> List[Product]:
        needle = name.lower()
        return sorted(
            (p for p in self._products.values() if needle in p.name.lower()),
            key=lambda p: p.name.lower(),
        )

    async def get_low_stock(self) -> List[Product]:
        return sorted(
            (p for p in self._products.values() if p.is_low_stock()),
            key=lambda p: (p.stock_quantity, p.name.lower()),
        )

    async def get_recent(self, count: int) -> List[Product]:
        return sorted(self._products.values(), key=lambda p: p.created_at, reverse=True)[:count]

    async def create(self, product: Product) -> Product:
        self._products[product.id] = product
        return product

    async def update(self, product: Product) -> None:
        self._products[product.id] = product

    async def delete(self, product_id: str) -> bool:
        return self._products.pop(product_id, None) is not None

    async def total_count(self) -> int:
        return len(self._products)

    async def total_stock_value(self) -> Decimal:
        return sum((p.stock_value for p in self._products.values()), Decimal("0"))

    async def count_by_category(self) -> Dict[str, int]:
        return dict(Counter(p.category_id for p in self._products.values()))


class InMemoryCategoryRepository:
    def __init__(self):
        self._categories: Dict[str, Category] = {}

    async def get_by_id(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    async def get_all(self) -> List[Category]:
        return sorted(self._categories.values(), key=lambda c: (c.name.lower(), c.id))

    async def create(self, category: Category) -> Category:
        self._categories[category.id] = category
        return category

    async def update(self, category: Category) -> None:
        self._categories[category.id] = category

    async def delete(self, category_id: str) -> bool:
        return self._categories.pop(category_id, None) is not None


class InMemoryAuditLogRepository:
    def __init__(self):
        self._entries: List[AuditLog] = []

    async def add(self, entry: AuditLog) -> None:
        self._entries.append(entry)

    async def get_recent(self, count: int) -> List[AuditLog]:
        return list(reversed(self._entries[-count:])) if count > 0 else []

