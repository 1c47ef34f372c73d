"""
Wiring of the paywall components from Settings.
Called once from the application lifespan; every component receives its collaborators here.
"""
from dataclasses import dataclass
import logging

import httpx
from sqlalchemy.engine import Engine

from paygate.core.config import Settings
from paygate.db.base import Base
from paygate.db.session import build_engine, build_sessionmaker
import paygate.models  # noqa: F401  (register tables)
from paygate.paywall.issuer import DownloadLinkIssuer
from paygate.paywall.verifier import PaymentVerifier
from paygate.services.catalog.service import ProductCatalog, SqlProductCatalog, SupabaseProductCatalog
from paygate.services.ledger.service import PurchaseLedger, SqlPurchaseLedger, SupabasePurchaseLedger
from paygate.services.storage.service import StorageSigner
from paygate.services.stripe.client import StripeClient
from paygate.services.supabase.client import SupabaseClient

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    verifier: PaymentVerifier
    issuer: DownloadLinkIssuer
    ledger: PurchaseLedger | None = None
    catalog: ProductCatalog | None = None
    engine: Engine | None = None


def build_services(settings: Settings, http: httpx.AsyncClient) -> Services:
    supabase = (
        SupabaseClient(http, settings.supabase_url, settings.supabase_service_key)
        if settings.supabase_configured
        else None
    )
    processor = (
        StripeClient(http, settings.stripe_secret_key, settings.stripe_api_base)
        if settings.stripe_configured
        else None
    )

    ledger: PurchaseLedger | None = None
    catalog: ProductCatalog | None = None
    engine: Engine | None = None
    if settings.ledger_backend == "database":
        if not settings.database_url:
            raise ValueError("database_url is required when ledger_backend=database")
        engine = build_engine(settings)
        Base.metadata.create_all(engine)
        session_factory = build_sessionmaker(engine)
        ledger = SqlPurchaseLedger(session_factory)
        catalog = SqlProductCatalog(session_factory)
    elif supabase is not None:
        ledger = SupabasePurchaseLedger(supabase)
        catalog = SupabaseProductCatalog(supabase)

    signer = StorageSigner(supabase, settings.supabase_storage_bucket) if supabase is not None else None

    if processor is None:
        logger.warning("STRIPE_SECRET_KEY not set; payment verification disabled")
    if ledger is None:
        logger.warning("No purchase ledger configured; every verification goes to Stripe")

    verifier = PaymentVerifier(processor=processor, ledger=ledger, catalog=catalog)
    issuer = DownloadLinkIssuer(verifier=verifier, catalog=catalog, signer=signer)
    return Services(
        settings=settings,
        verifier=verifier,
        issuer=issuer,
        ledger=ledger,
        catalog=catalog,
        engine=engine,
    )
