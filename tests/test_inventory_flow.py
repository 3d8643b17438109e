"""End-to-end inventory scenarios through the full pipeline."""
import asyncio
from decimal import Decimal

import pytest

from config.settings import PipelineSettings
from inventory import (
    InMemoryAuditLogRepository,
    InMemoryCategoryRepository,
    InMemoryProductRepository,
    NotFoundError,
    create_dispatcher,
)
from inventory import requests as rq
from inventory.models import (
    CreateCategoryDto,
    CreateProductDto,
    UpdateCategoryDto,
    UpdateProductDto,
)
from pipeline.errors import RequestValidationError
from pipeline.keys import derive_key


class CountingCategoryRepository(InMemoryCategoryRepository):
    def __init__(self):
        super().__init__()
        self.get_all_calls = 0

    async def get_all(self):
        self.get_all_calls += 1
        return await super().get_all()


@pytest.fixture
def categories():
    return CountingCategoryRepository()


@pytest.fixture
def pipeline(categories, store):
    return create_dispatcher(
        PipelineSettings(_env_file=None),
        products=InMemoryProductRepository(),
        categories=categories,
        audit_logs=InMemoryAuditLogRepository(),
        store=store,
        setup_logging=False,
    )


def _product(category_id, name="Laptop", stock=25, price="999.99"):
    return CreateProductDto(
        name=name,
        description="A portable computer",
        price=Decimal(price),
        category_id=category_id,
        stock_quantity=stock,
    )


def test_created_category_is_listed_then_served_from_cache(pipeline, categories, store):
    async def scenario():
        created = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))

        listed = await pipeline.send(rq.ListCategories())
        assert [c.name for c in listed] == ["Electronics"]
        assert listed[0].id == created.id
        assert categories.get_all_calls == 1
        assert store.exists("ListCategories:")

        again = await pipeline.send(rq.ListCategories())
        assert again == listed
        assert categories.get_all_calls == 1

    asyncio.run(scenario())


def test_category_write_purges_cached_listing(pipeline, categories):
    async def scenario():
        await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        await pipeline.send(rq.ListCategories())

        await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Garden")))
        listed = await pipeline.send(rq.ListCategories())

        assert sorted(c.name for c in listed) == ["Electronics", "Garden"]
        assert categories.get_all_calls == 2

    asyncio.run(scenario())


def test_product_reads_are_fresh_after_writes(pipeline, store):
    async def scenario():
        category = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        product = await pipeline.send(rq.CreateProduct(_product(category.id)))

        fetched = await pipeline.send(rq.GetProductById(product.id))
        assert fetched.stock_quantity == 25
        assert store.exists(derive_key(rq.GetProductById(product.id)))

        update = UpdateProductDto(**_product(category.id, stock=3).model_dump())
        await pipeline.send(rq.UpdateProduct(product.id, update))

        assert not store.exists(derive_key(rq.GetProductById(product.id)))
        fetched = await pipeline.send(rq.GetProductById(product.id))
        assert fetched.stock_quantity == 3
        assert fetched.is_low_stock

        low = await pipeline.send(rq.LowStockProducts())
        assert [p.id for p in low] == [product.id]

    asyncio.run(scenario())


def test_category_rename_reaches_product_reads(pipeline):
    async def scenario():
        category = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        product = await pipeline.send(rq.CreateProduct(_product(category.id)))
        assert (await pipeline.send(rq.GetProductById(product.id))).category_name == "Electronics"

        await pipeline.send(rq.UpdateCategory(category.id, UpdateCategoryDto(name="Computers")))

        assert (await pipeline.send(rq.GetProductById(product.id))).category_name == "Computers"

    asyncio.run(scenario())


def test_dashboard_reflects_product_changes(pipeline):
    async def scenario():
        category = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        empty = await pipeline.send(rq.Dashboard())
        assert empty.total_products == 0

        await pipeline.send(rq.CreateProduct(_product(category.id, stock=2, price="10")))
        dashboard = await pipeline.send(rq.Dashboard())

        assert dashboard.total_products == 1
        assert dashboard.total_stock_value == Decimal("20")
        assert dashboard.low_stock_count == 1
        assert dashboard.products_by_category == {"Electronics": 1}

        audit = await pipeline.send(rq.RecentAuditLogs())
        assert [(e.action, e.entity_type) for e in audit] == [("Create", "Product"), ("Create", "Category")]

    asyncio.run(scenario())


def test_paginated_listing_round_trips_through_cache(pipeline):
    async def scenario():
        category = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        for index in range(3):
            await pipeline.send(rq.CreateProduct(_product(category.id, name=f"Item {index}")))

        first = await pipeline.send(rq.ListProducts(page=1, page_size=2))
        cached = await pipeline.send(rq.ListProducts(page=1, page_size=2))

        assert cached == first
        assert first.total_count == 3
        assert first.total_pages == 2
        assert first.has_next_page and not first.has_previous_page

    asyncio.run(scenario())


def test_missing_product_propagates_not_found(pipeline, store):
    async def scenario():
        assert await pipeline.send(rq.GetProductById("nope")) is None

        with pytest.raises(NotFoundError) as excinfo:
            await pipeline.send(rq.DeleteProduct("nope"))
        assert excinfo.value.entity_type == "Product"
        # A failed write purges nothing
        assert not any(call[0] == 'remove_by_prefix' for call in store.calls)

    asyncio.run(scenario())


def test_invalid_write_is_rejected_before_the_handler(pipeline, categories):
    async def scenario():
        with pytest.raises(RequestValidationError) as excinfo:
            await pipeline.send(rq.CreateCategory(CreateCategoryDto.model_construct(name="TV", description="")))
        assert "category.name" in excinfo.value.errors_by_field()
        assert await categories.get_all() == []

    asyncio.run(scenario())


def test_cache_outage_is_invisible_to_callers(pipeline, store):
    store.fail_get = store.fail_set = True
    store.fail_prefixes = {"*"}

    async def scenario():
        category = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        listed = await pipeline.send(rq.ListCategories())
        assert [c.id for c in listed] == [category.id]

    asyncio.run(scenario())


def test_products_get_sequential_skus(pipeline):
    async def scenario():
        category = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        first = await pipeline.send(rq.CreateProduct(_product(category.id, name="Laptop")))
        second = await pipeline.send(rq.CreateProduct(_product(category.id, name="Mouse")))

        assert first.sku.startswith("PRD") and len(first.sku) == 9
        assert int(second.sku[3:]) == int(first.sku[3:]) + 1

        update = UpdateProductDto(**_product(category.id, name="Gaming Laptop").model_dump())
        updated = await pipeline.send(rq.UpdateProduct(first.id, update))
        assert updated.sku == first.sku
        assert (await pipeline.send(rq.GetProductById(first.id))).sku == first.sku

    asyncio.run(scenario())


def test_blank_category_filter_is_not_served_the_unfiltered_page(pipeline):
    async def scenario():
        category = await pipeline.send(rq.CreateCategory(CreateCategoryDto(name="Electronics")))
        await pipeline.send(rq.CreateProduct(_product(category.id)))

        unfiltered = await pipeline.send(rq.ListProducts(category_id=None))
        blank = await pipeline.send(rq.ListProducts(category_id=""))

        assert unfiltered.total_count == 1
        assert blank.total_count == 0

    asyncio.run(scenario())
