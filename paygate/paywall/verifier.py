"""
Decision: PaymentVerifier.verify(session_id, slug) -> VerificationDecision.

Order of checks:
1. empty input -> denied, no I/O
2. purchase ledger hit -> ok (cached); ledger failure counts as a miss
3. Stripe checkout session + product payment link (read concurrently);
   any failure -> denied
4. paid and link matches -> ok, purchase recorded in a detached task
"""
from __future__ import annotations

import asyncio
import logging

from paygate.core.errors import UpstreamError
from paygate.paywall.models import VerificationDecision
from paygate.schemas.catalog import ProductRow, PurchaseRecord
from paygate.schemas.checkout import CheckoutSession
from paygate.services.catalog.service import ProductCatalog
from paygate.services.ledger.service import PurchaseLedger
from paygate.services.stripe.client import StripeClient
from paygate.utils.metrics import purchase_records_total, verify_decisions_total

logger = logging.getLogger(__name__)


def link_matches(session: CheckoutSession, product: ProductRow | None) -> bool:
    """
    A product without an expected payment link accepts any link.
    Kept for catalogs that do not bind products to links.
    """
    expected = product.expected_payment_link_id if product else None
    if not expected:
        return True
    return session.payment_link == expected


class PaymentVerifier:
    """
    ledger and catalog are None when Supabase/database is not configured:
    no cache, no link binding, no recording. processor is None without a Stripe key.
    """

    def __init__(
        self,
        *,
        processor: StripeClient | None,
        ledger: PurchaseLedger | None = None,
        catalog: ProductCatalog | None = None,
    ) -> None:
        self._processor = processor
        self._ledger = ledger
        self._catalog = catalog
        self._pending: set[asyncio.Task] = set()

    async def verify(self, session_id: str, slug: str) -> VerificationDecision:
        if not session_id or not slug:
            verify_decisions_total.labels(result="denied", source="input").inc()
            return VerificationDecision(ok=False)

        # 1. Fast path: purchase ledger
        if await self._ledger_hit(session_id, slug):
            verify_decisions_total.labels(result="ok", source="cache").inc()
            return VerificationDecision(ok=True, from_cache=True)

        # 2. Source of truth: Stripe
        if self._processor is None:
            verify_decisions_total.labels(result="denied", source="config").inc()
            logger.warning("payment_verification_unconfigured", extra={"session_id": session_id, "slug": slug})
            return VerificationDecision(ok=False)

        session_res, product_res = await asyncio.gather(
            self._processor.get_checkout_session(session_id),
            self._get_product(slug),
            return_exceptions=True,
        )
        for res in (session_res, product_res):
            if isinstance(res, UpstreamError):
                verify_decisions_total.labels(result="denied", source="processor").inc()
                logger.info(
                    "payment_verification_failed",
                    extra={"session_id": session_id, "slug": slug, "upstream": res.upstream, "error": str(res)},
                )
                return VerificationDecision(ok=False)
            if isinstance(res, BaseException):
                raise res

        session: CheckoutSession = session_res
        product: ProductRow | None = product_res
        paid = session.is_paid
        link_match = link_matches(session, product)

        if not (paid and link_match):
            verify_decisions_total.labels(result="denied", source="processor").inc()
            logger.info(
                "payment_not_verified",
                extra={
                    "session_id": session_id,
                    "slug": slug,
                    "outcome": "unpaid" if not paid else "link_mismatch",
                },
            )
            return VerificationDecision(ok=False)

        verify_decisions_total.labels(result="ok", source="processor").inc()
        logger.info("payment_verified", extra={"session_id": session_id, "slug": slug, "source": "processor"})
        self._schedule_record(
            PurchaseRecord(
                session_id=session_id,
                product_slug=slug,
                email=session.customer_email,
                amount_paid=session.amount_total,
            )
        )
        return VerificationDecision(ok=True)

    async def _ledger_hit(self, session_id: str, slug: str) -> bool:
        if self._ledger is None:
            return False
        try:
            return await self._ledger.has_purchase(session_id, slug)
        except UpstreamError as e:
            # Availability problem only: fall through to Stripe
            logger.warning("purchase_ledger_unavailable", extra={"session_id": session_id, "error": str(e)})
            return False

    async def _get_product(self, slug: str) -> ProductRow | None:
        if self._catalog is None:
            return None
        return await self._catalog.get_product(slug)

    # ------------------------------------------------------------------
    # Best-effort recording
    # ------------------------------------------------------------------

    def _schedule_record(self, purchase: PurchaseRecord) -> None:
        """
        Fire-and-forget: the response never waits for the write.
        At most one task per positive decision; failures are discarded,
        a duplicate session_id counts as recorded.
        """
        if self._ledger is None:
            return
        task = asyncio.create_task(self._record(purchase))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record(self, purchase: PurchaseRecord) -> None:
        try:
            created = await self._ledger.record(purchase)
        except Exception as e:
            purchase_records_total.labels(status="failed").inc()
            logger.debug(
                "purchase_record_failed",
                extra={"session_id": purchase.session_id, "slug": purchase.product_slug, "error": repr(e)},
            )
            return
        purchase_records_total.labels(status="created" if created else "duplicate").inc()

    async def drain(self) -> None:
        """Wait for pending purchase writes (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
