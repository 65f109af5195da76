# catalog browsing and admin inventory maintenance
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Dict, List

from db import models
from db.database import Database
from db.products import CategoryStore, ProductStore
from utils.errors import CategoryNotFound, InsufficientStock, ProductNotFound, ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)


def parse_price(value) -> Decimal:
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"not a valid price: {value!r}", field="price") from None
    if not price.is_finite() or price <= 0:
        raise ValidationError("price must be greater than zero", field="price")
    return price


class CatalogService:
    def __init__(self, database: Database) -> None:
        self.database = database

    async def search(self, query: str) -> List[models.Product]:
        async with self.database.connect() as conn:
            return await ProductStore(conn).search(query)

    async def get_product(self, product_id: int) -> models.Product:
        async with self.database.connect() as conn:
            product = await ProductStore(conn).get_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    async def get_products(self, product_ids) -> Dict[int, models.Product]:
        """Products keyed by id; ids that no longer exist are left out."""
        async with self.database.connect() as conn:
            found = await ProductStore(conn).get_by_ids(product_ids)
        return {p.id: p for p in found}

    async def list_categories(self) -> List[models.Category]:
        async with self.database.connect() as conn:
            return await CategoryStore(conn).list_all()

    async def create_category(self, name: str, description: str = "") -> models.Category:
        name = (name or "").strip()
        if len(name) < 2:
            raise ValidationError("category name is too short", field="name")
        async with self.database.transaction() as conn:
            category = await CategoryStore(conn).create(name, description.strip())
        _logger.info(f"Category {category.id} '{category.name}' created")
        return category

    async def create_product(
        self,
        category_id: int,
        name: str,
        description: str,
        price,
        stock: int,
        image_url: str = "",
    ) -> models.Product:
        name = (name or "").strip()
        if len(name) < 2:
            raise ValidationError("product name is too short", field="name")
        if stock < 0:
            raise ValidationError("stock cannot be negative", field="stock")
        unit_price = parse_price(price)

        async with self.database.transaction() as conn:
            if await CategoryStore(conn).get_by_id(category_id) is None:
                raise CategoryNotFound(category_id)
            product = await ProductStore(conn).create(
                category_id, name, description, unit_price, stock, image_url
            )
        _logger.info(f"Product {product.id} '{product.name}' created with stock {stock}")
        return product

    async def update_price(self, product_id: int, price) -> models.Product:
        """New price applies to future checkouts only; past orders keep their snapshot."""
        unit_price = parse_price(price)
        async with self.database.transaction() as conn:
            products = ProductStore(conn)
            if not await products.update_price(product_id, unit_price):
                raise ProductNotFound(product_id)
            product = await products.get_by_id(product_id)
        _logger.info(f"Product {product_id} repriced to {unit_price}")
        return product

    async def restock(self, product_id: int, delta: int) -> models.Product:
        """Inventory correction through the same atomic delta the cart uses."""
        if delta == 0:
            raise ValidationError("restock amount cannot be zero", field="delta")
        async with self.database.transaction() as conn:
            products = ProductStore(conn)
            product = await products.get_by_id(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if not await products.adjust_stock(product_id, delta):
                raise InsufficientStock(product.id, product.name, product.stock, -delta)
            product = await products.get_by_id(product_id)
        _logger.info(f"Product {product_id} stock adjusted by {delta:+d} to {product.stock}")
        return product
