"""
Inventory request handlers.

Handlers only talk to the repositories; caching and invalidation are the
pipeline's concern and never show up here.
"""
import math
from typing import List, Optional

import structlog

from pipeline.dispatcher import HandlerRegistry
from pipeline.errors import PipelineError

from . import requests as rq
from .models import (
    AuditLog,
    AuditLogDto,
    Category,
    CategoryDto,
    DashboardDto,
    PaginatedProducts,
    Product,
    ProductDto,
    RecentProductDto,
)
from .repositories import AuditLogRepository, CategoryRepository, ProductRepository

logger = structlog.get_logger()

SYSTEM_USER = "system"


class NotFoundError(PipelineError):
    """The entity a command targets does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id {entity_id} not found")


class InventoryHandlers:
    def __init__(
        self,
        products: ProductRepository,
        categories: CategoryRepository,
        audit_logs: AuditLogRepository,
        user_id: str = SYSTEM_USER,
    ):
        self.products = products
        self.categories = categories
        self.audit_logs = audit_logs
        self.user_id = user_id

    def register(self, registry: HandlerRegistry) -> None:
        registry.register(rq.ListProducts, self.list_products)
        registry.register(rq.GetProductById, self.get_product_by_id)
        registry.register(rq.LowStockProducts, self.low_stock_products)
        registry.register(rq.SearchProducts, self.search_products)
        registry.register(rq.CreateProduct, self.create_product)
        registry.register(rq.UpdateProduct, self.update_product)
        registry.register(rq.DeleteProduct, self.delete_product)
        registry.register(rq.ListCategories, self.list_categories)
        registry.register(rq.GetCategoryById, self.get_category_by_id)
        registry.register(rq.CreateCategory, self.create_category)
        registry.register(rq.UpdateCategory, self.update_category)
        registry.register(rq.DeleteCategory, self.delete_category)
        registry.register(rq.Dashboard, self.dashboard)
        registry.register(rq.RecentProducts, self.recent_products)
        registry.register(rq.RecentAuditLogs, self.recent_audit_logs)

    # Products

    async def list_products(self, request: rq.ListProducts) -> PaginatedProducts:
        products, total = await self.products.get_page(request.page, request.page_size, request.category_id)
        return PaginatedProducts(
            items=await self._product_dtos(products),
            page=request.page,
            page_size=request.page_size,
            total_count=total,
            total_pages=math.ceil(total / request.page_size) if total else 0,
        )

    async def get_product_by_id(self, request: rq.GetProductById) -> Optional[ProductDto]:
        product = await self.products.get_by_id(request.id)
        if product is None:
            return None
        return ProductDto.from_entity(product, await self._category_name(product.category_id))

    async def low_stock_products(self, request: rq.LowStockProducts) -> List[ProductDto]:
        return await self._product_dtos(await self.products.get_low_stock())

    async def search_products(self, request: rq.SearchProducts) -> List[ProductDto]:
        return await self._product_dtos(await self.products.search_by_name(request.name.strip()))

    async def create_product(self, request: rq.CreateProduct) -> ProductDto:
        data = request.product
        product = await self.products.create(Product(
            name=data.name,
            description=data.description,
            price=data.price,
            category_id=data.category_id,
            stock_quantity=data.stock_quantity,
        ))
        await self._audit("Create", rq.PRODUCT, product.id, product.name, f"Created product with price {product.price}")
        return ProductDto.from_entity(product, await self._category_name(product.category_id))

    async def update_product(self, request: rq.UpdateProduct) -> ProductDto:
        product = await self.products.get_by_id(request.id)
        if product is None:
            raise NotFoundError(rq.PRODUCT, request.id)
        data = request.product
        product.update(data.name, data.description, data.price, data.category_id, data.stock_quantity)
        await self.products.update(product)
        await self._audit("Update", rq.PRODUCT, product.id, product.name, "Updated product")
        return ProductDto.from_entity(product, await self._category_name(product.category_id))

    async def delete_product(self, request: rq.DeleteProduct) -> None:
        product = await self.products.get_by_id(request.id)
        if product is None:
            raise NotFoundError(rq.PRODUCT, request.id)
        await self.products.delete(request.id)
        await self._audit("Delete", rq.PRODUCT, request.id, product.name, "Product deleted")

    # Categories

    async def list_categories(self, request: rq.ListCategories) -> List[CategoryDto]:
        return [CategoryDto.from_entity(c) for c in await self.categories.get_all()]

    async def get_category_by_id(self, request: rq.GetCategoryById) -> Optional[CategoryDto]:
        category = await self.categories.get_by_id(request.id)
        return CategoryDto.from_entity(category) if category is not None else None

    async def create_category(self, request: rq.CreateCategory) -> CategoryDto:
        data = request.category
        category = await self.categories.create(Category(name=data.name, description=data.description))
        await self._audit("Create", rq.CATEGORY, category.id, category.name, f"Created category: {category.description}")
        return CategoryDto.from_entity(category)

    async def update_category(self, request: rq.UpdateCategory) -> CategoryDto:
        category = await self.categories.get_by_id(request.id)
        if category is None:
            raise NotFoundError(rq.CATEGORY, request.id)
        category.update(request.category.name, request.category.description)
        await self.categories.update(category)
        await self._audit("Update", rq.CATEGORY, category.id, category.name, "Updated category")
        return CategoryDto.from_entity(category)

    async def delete_category(self, request: rq.DeleteCategory) -> None:
        category = await self.categories.get_by_id(request.id)
        if category is None:
            raise NotFoundError(rq.CATEGORY, request.id)
        await self.categories.delete(request.id)
        await self._audit("Delete", rq.CATEGORY, request.id, category.name, "Category deleted")

    # Dashboard

    async def dashboard(self, request: rq.Dashboard) -> DashboardDto:
        return DashboardDto(
            total_products=await self.products.total_count(),
            total_stock_value=await self.products.total_stock_value(),
            low_stock_count=len(await self.products.get_low_stock()),
            products_by_category=await self._products_by_category_name(),
        )

    async def recent_products(self, request: rq.RecentProducts) -> List[RecentProductDto]:
        recent = []
        for product in await self.products.get_recent(request.count):
            recent.append(RecentProductDto(
                id=product.id,
                name=product.name,
                category_name=await self._category_name(product.category_id),
                stock_quantity=product.stock_quantity,
                created_at=product.created_at,
            ))
        return recent

    async def recent_audit_logs(self, request: rq.RecentAuditLogs) -> List[AuditLogDto]:
        return [AuditLogDto.from_entity(e) for e in await self.audit_logs.get_recent(request.count)]

    async def _category_name(self, category_id: str) -> str:
        category = await self.categories.get_by_id(category_id)
        return category.name if category is not None else "Unknown"

    async def _product_dtos(self, products: List[Product]) -> List[ProductDto]:
        return [ProductDto.from_entity(p, await self._category_name(p.category_id)) for p in products]

    async def _products_by_category_name(self) -> dict:
        counts = await self.products.count_by_category()
        named = {}
        for category_id, count in counts.items():
            name = await self._category_name(category_id)
            named[name] = named.get(name, 0) + count
        return named

    async def _audit(self, action: str, entity_type: str, entity_id: str, entity_name: str, details: str) -> None:
        await self.audit_logs.add(AuditLog(
            user_id=self.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            details=details,
        ))
        logger.info("inventory_changed", action=action, entity_type=entity_type, entity_id=entity_id)
