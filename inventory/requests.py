"""Inventory reads and writes dispatched through the pipeline."""
from dataclasses import dataclass
from typing import List, Optional

from pipeline.requests import Command, DashboardQuery, ItemQuery, ListQuery

from .constraints import EntityId, PageNumber, PageSize, RecentCount, SearchTerm

from .models import (
    AuditLogDto,
    CategoryDto,
    CreateCategoryDto,
    CreateProductDto,
    DashboardDto,
    PaginatedProducts,
    ProductDto,
    RecentProductDto,
    UpdateCategoryDto,
    UpdateProductDto,
)

PRODUCT = "Product"
CATEGORY = "Category"


# Products

@dataclass(frozen=True)
class ListProducts(ListQuery):
    response_type = PaginatedProducts

    page: PageNumber = 1
    page_size: PageSize = 10
    category_id: Optional[str] = None


@dataclass(frozen=True)
class GetProductById(ItemQuery):
    response_type = Optional[ProductDto]

    id: EntityId


@dataclass(frozen=True)
class LowStockProducts(ListQuery):
    response_type = List[ProductDto]


@dataclass(frozen=True)
class SearchProducts(ListQuery):
    response_type = List[ProductDto]

    name: SearchTerm


@dataclass(frozen=True)
class CreateProduct(Command):
    response_type = ProductDto
    subject = PRODUCT

    product: CreateProductDto


@dataclass(frozen=True)
class UpdateProduct(Command):
    response_type = ProductDto
    subject = PRODUCT

    id: EntityId
    product: UpdateProductDto


@dataclass(frozen=True)
class DeleteProduct(Command):
    response_type = type(None)
    subject = PRODUCT

    id: EntityId


# Categories

@dataclass(frozen=True)
class ListCategories(ListQuery):
    response_type = List[CategoryDto]


@dataclass(frozen=True)
class GetCategoryById(ItemQuery):
    response_type = Optional[CategoryDto]

    id: EntityId


@dataclass(frozen=True)
class CreateCategory(Command):
    response_type = CategoryDto
    subject = CATEGORY

    category: CreateCategoryDto


@dataclass(frozen=True)
class UpdateCategory(Command):
    response_type = CategoryDto
    subject = CATEGORY

    id: EntityId
    category: UpdateCategoryDto


@dataclass(frozen=True)
class DeleteCategory(Command):
    response_type = type(None)
    subject = CATEGORY

    id: EntityId


# Dashboard

@dataclass(frozen=True)
class Dashboard(DashboardQuery):
    response_type = DashboardDto


@dataclass(frozen=True)
class RecentProducts(DashboardQuery, ListQuery):
    response_type = List[RecentProductDto]

    count: RecentCount = 10


@dataclass(frozen=True)
class RecentAuditLogs(DashboardQuery, ListQuery):
    response_type = List[AuditLogDto]

    count: RecentCount = 10
