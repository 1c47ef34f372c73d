"""Settings validation and component wiring per backend."""
import asyncio
import unittest

import httpx
from pydantic import ValidationError

from paygate.core.config import Settings
from paygate.schemas.catalog import PurchaseRecord
from paygate.services.catalog.service import SqlProductCatalog, SupabaseProductCatalog
from paygate.services.factory import build_services
from paygate.services.ledger.service import SqlPurchaseLedger, SupabasePurchaseLedger


class TestSettings(unittest.TestCase):
    def test_defaults_without_credentials(self):
        settings = Settings(_env_file=None)
        self.assertFalse(settings.supabase_configured)
        self.assertFalse(settings.stripe_configured)
        self.assertEqual(settings.ledger_backend, "supabase")
        self.assertEqual(settings.http_client_timeout, 10.0)

    def test_supabase_url_trailing_slash_stripped(self):
        settings = Settings(_env_file=None, supabase_url="https://proj.supabase.co/")
        self.assertEqual(settings.supabase_url, "https://proj.supabase.co")

    def test_invalid_ledger_backend(self):
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, ledger_backend="redis")

    def test_cors_origins_list(self):
        settings = Settings(_env_file=None, cors_origins="https://a.example, https://b.example,")
        self.assertEqual(settings.cors_origins_list, ["https://a.example", "https://b.example"])


class TestBuildServices(unittest.TestCase):
    def setUp(self):
        self.http = httpx.AsyncClient()

    def tearDown(self):
        asyncio.run(self.http.aclose())

    def test_supabase_backend(self):
        settings = Settings(
            _env_file=None,
            supabase_url="https://proj.supabase.co",
            supabase_service_key="svc",
            supabase_storage_bucket="workflows",
            stripe_secret_key="sk_test",
        )
        services = build_services(settings, self.http)
        self.assertIsInstance(services.ledger, SupabasePurchaseLedger)
        self.assertIsInstance(services.catalog, SupabaseProductCatalog)
        self.assertIsNone(services.engine)

    def test_database_backend(self):
        settings = Settings(_env_file=None, ledger_backend="database", database_url="sqlite://")
        services = build_services(settings, self.http)
        try:
            self.assertIsInstance(services.ledger, SqlPurchaseLedger)
            self.assertIsInstance(services.catalog, SqlProductCatalog)
        finally:
            services.engine.dispose()

    def test_in_memory_database_shared_across_threads(self):
        settings = Settings(_env_file=None, ledger_backend="database", database_url="sqlite://")
        services = build_services(settings, self.http)

        async def roundtrip():
            created = await services.ledger.record(PurchaseRecord(session_id="cs_1", product_slug="slug"))
            found = await services.ledger.has_purchase("cs_1", "slug")
            product = await services.catalog.get_product("slug")
            return created, found, product

        try:
            created, found, product = asyncio.run(roundtrip())
        finally:
            services.engine.dispose()

        self.assertTrue(created)
        self.assertTrue(found)
        self.assertIsNone(product)

    def test_database_backend_requires_url(self):
        settings = Settings(_env_file=None, ledger_backend="database")
        with self.assertRaises(ValueError):
            build_services(settings, self.http)

    def test_nothing_configured(self):
        services = build_services(Settings(_env_file=None), self.http)
        self.assertIsNone(services.ledger)
        self.assertIsNone(services.catalog)

    def test_verify_without_stripe_denies(self):
        services = build_services(Settings(_env_file=None), self.http)
        decision = asyncio.run(services.verifier.verify("cs_1", "slug"))
        self.assertFalse(decision.ok)
