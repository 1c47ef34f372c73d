"""
Purchase ledger: append-only record of verified checkout sessions.

Two backends with the same contract:
- SupabasePurchaseLedger: PostgREST purchases table via the service key
- SqlPurchaseLedger: SQLAlchemy Purchase model (sync engine, run in the thread pool)

Contract:
- has_purchase(session_id, slug) -> bool; raises UpstreamError if the store is unreachable
- record(purchase) -> bool; True = created, False = already present (duplicate session_id)
"""
from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from paygate.core.errors import UpstreamError
from paygate.models.purchase import Purchase
from paygate.schemas.catalog import PurchaseRecord
from paygate.services.supabase.client import SupabaseClient

logger = logging.getLogger(__name__)

PURCHASES_TABLE = "purchases"


class PurchaseLedger(Protocol):
    async def has_purchase(self, session_id: str, slug: str) -> bool: ...

    async def record(self, purchase: PurchaseRecord) -> bool: ...

    async def ping(self) -> None: ...


class SupabasePurchaseLedger:
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def has_purchase(self, session_id: str, slug: str) -> bool:
        rows = await self._client.select(
            PURCHASES_TABLE,
            {"session_id": session_id, "product_slug": slug},
            columns="id",
        )
        return len(rows) > 0

    async def record(self, purchase: PurchaseRecord) -> bool:
        return await self._client.insert(
            PURCHASES_TABLE,
            purchase.model_dump(include={"session_id", "product_slug", "email", "amount_paid"}),
        )

    async def ping(self) -> None:
        await self._client.select(PURCHASES_TABLE, {}, columns="id", limit=1)


class SqlPurchaseLedger:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _has_purchase_sync(self, session_id: str, slug: str) -> bool:
        try:
            with self._session_factory() as db:
                row = db.execute(
                    select(Purchase.id)
                    .where(Purchase.session_id == session_id, Purchase.product_slug == slug)
                    .limit(1)
                ).first()
        except SQLAlchemyError as e:
            raise UpstreamError("Ledger query failed", upstream="database") from e
        return row is not None

    def _record_sync(self, purchase: PurchaseRecord) -> bool:
        with self._session_factory() as db:
            db.add(
                Purchase(
                    session_id=purchase.session_id,
                    product_slug=purchase.product_slug,
                    email=purchase.email,
                    amount_paid=purchase.amount_paid,
                )
            )
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.debug("purchase_record_duplicate", extra={"session_id": purchase.session_id})
                return False
            except SQLAlchemyError as e:
                db.rollback()
                raise UpstreamError("Ledger insert failed", upstream="database") from e
        return True

    def _ping_sync(self) -> None:
        try:
            with self._session_factory() as db:
                db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise UpstreamError("Database unavailable", upstream="database") from e

    async def has_purchase(self, session_id: str, slug: str) -> bool:
        return await run_in_threadpool(self._has_purchase_sync, session_id, slug)

    async def record(self, purchase: PurchaseRecord) -> bool:
        return await run_in_threadpool(self._record_sync, purchase)

    async def ping(self) -> None:
        await run_in_threadpool(self._ping_sync)
