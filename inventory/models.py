"""
Inventory data models.

Entities are the mutable records the repositories store; DTOs are the
immutable pydantic models handlers return and the pipeline caches.
"""
import itertools
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

LOW_STOCK_THRESHOLD = 10


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


_sku_numbers = itertools.count(1)


def _next_sku() -> str:
    return f"PRD{next(_sku_numbers):06d}"


@dataclass
class Category:
    name: str
    description: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def update(self, name: str, description: str) -> None:
        self.name = name
        self.description = description
        self.updated_at = _now()


@dataclass
class Product:
    name: str
    description: str
    price: Decimal
    category_id: str
    stock_quantity: int
    id: str = field(default_factory=_new_id)
    sku: str = field(default_factory=_next_sku)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def update(self, name: str, description: str, price: Decimal, category_id: str, stock_quantity: int) -> None:
        self.name = name
        self.description = description
        self.price = price
        self.category_id = category_id
        self.stock_quantity = stock_quantity
        self.updated_at = _now()

    def is_low_stock(self) -> bool:
        return self.stock_quantity < LOW_STOCK_THRESHOLD

    @property
    def stock_value(self) -> Decimal:
        return self.price * self.stock_quantity


@dataclass
class AuditLog:
    user_id: str
    action: str
    entity_type: str
    entity_id: str
    entity_name: Optional[str] = None
    details: Optional[str] = None
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)


class _Dto(BaseModel):
    model_config = ConfigDict(frozen=True)


class CategoryDto(_Dto):
    id: str
    name: str
    description: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryDto":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


class _Payload(_Dto):
    """Inbound data, checked again each time it passes through validation."""

    model_config = ConfigDict(frozen=True, revalidate_instances="always")


class CreateCategoryDto(_Payload):
    name: str = Field(min_length=3, max_length=100)
    description: str = Field(default="", max_length=500)

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class UpdateCategoryDto(CreateCategoryDto):
    pass


class ProductDto(_Dto):
    id: str
    sku: str
    name: str
    description: str
    price: Decimal
    category_id: str
    category_name: str
    stock_quantity: int
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product, category_name: Optional[str] = None) -> "ProductDto":
        return cls(
            id=product.id,
            sku=product.sku or f"PRD{product.id[:6].upper()}",
            name=product.name,
            description=product.description,
            price=product.price,
            category_id=product.category_id,
            category_name=category_name or "Unknown",
            stock_quantity=product.stock_quantity,
            is_low_stock=product.is_low_stock(),
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class CreateProductDto(_Payload):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    price: Decimal = Field(gt=0)
    category_id: str = Field(min_length=1)
    stock_quantity: int = Field(ge=0)

    @field_validator("name", "description", "category_id", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class UpdateProductDto(CreateProductDto):
    pass


class PaginatedProducts(_Dto):
    items: List[ProductDto]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @computed_field
    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @computed_field
    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages


class DashboardDto(_Dto):
    total_products: int
    total_stock_value: Decimal
    low_stock_count: int
    products_by_category: Dict[str, int]


class RecentProductDto(_Dto):
    id: str
    name: str
    category_name: str
    stock_quantity: int
    created_at: datetime


class AuditLogDto(_Dto):
    id: str
    user_id: str
    action: str
    entity_type: str
    entity_id: str
    entity_name: Optional[str] = None
    details: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_entity(cls, entry: AuditLog) -> "AuditLogDto":
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            entity_name=entry.entity_name,
            details=entry.details,
            timestamp=entry.timestamp,
        )
