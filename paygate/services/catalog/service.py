"""
Product catalog: read-only lookup by slug.
get_product returns None for an unknown slug and raises UpstreamError when the store fails.
"""
from __future__ import annotations

from typing import Protocol

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from paygate.core.errors import UpstreamError
from paygate.models.product import Product
from paygate.schemas.catalog import ProductRow
from paygate.services.supabase.client import SupabaseClient

PRODUCTS_TABLE = "products"
PRODUCT_COLUMNS = "slug,file_path,stripe_payment_link_id,active"


class ProductCatalog(Protocol):
    async def get_product(self, slug: str) -> ProductRow | None: ...


class SupabaseProductCatalog:
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def get_product(self, slug: str) -> ProductRow | None:
        rows = await self._client.select(PRODUCTS_TABLE, {"slug": slug}, columns=PRODUCT_COLUMNS)
        if not rows:
            return None
        try:
            return ProductRow.model_validate(rows[0])
        except ValidationError as e:
            raise UpstreamError("Malformed product row", upstream="supabase_rest", body=rows[0]) from e


class SqlProductCatalog:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _get_product_sync(self, slug: str) -> ProductRow | None:
        try:
            with self._session_factory() as db:
                product = db.execute(select(Product).where(Product.slug == slug)).scalar_one_or_none()
                if product is None:
                    return None
                return ProductRow.model_validate(product)
        except SQLAlchemyError as e:
            raise UpstreamError("Catalog query failed", upstream="database") from e

    async def get_product(self, slug: str) -> ProductRow | None:
        return await run_in_threadpool(self._get_product_sync, slug)
