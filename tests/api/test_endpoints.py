"""
HTTP surface: /verify, /download, /config (plus /api aliases), health and static pages.
Services are replaced through dependency_overrides; no upstream is contacted.
"""
import os
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from paygate.api.deps import get_services
from paygate.core.config import Settings
from paygate.core.errors import UpstreamError
from paygate.main import create_app
from paygate.paywall.models import DownloadOutcome, DownloadResult, VerificationDecision
from paygate.services.factory import Services


def _settings(**kwargs) -> Settings:
    data = {
        "supabase_url": "https://proj.supabase.co",
        "supabase_anon_key": "anon-key",
        "supabase_service_key": "service-key",
        "stripe_secret_key": "sk_test_123",
    }
    data.update(kwargs)
    return Settings(_env_file=None, **data)


def _services(settings: Settings, decision_ok: bool = True, result: DownloadResult | None = None) -> Services:
    verifier = MagicMock()
    verifier.verify = AsyncMock(return_value=VerificationDecision(ok=decision_ok))
    issuer = MagicMock()
    issuer.issue = AsyncMock(
        return_value=result or DownloadResult(outcome=DownloadOutcome.DENIED, message="Payment not verified.")
    )
    return Services(settings=settings, verifier=verifier, issuer=issuer)


def _client(services: Services, settings: Settings | None = None) -> TestClient:
    app = create_app(settings or services.settings)
    app.dependency_overrides[get_services] = lambda: services
    return TestClient(app)


class TestVerifyEndpoint(unittest.TestCase):
    def test_verify_ok(self):
        services = _services(_settings(), decision_ok=True)
        client = _client(services)

        resp = client.get("/verify", params={"p": "email-digest", "session_id": "cs_1"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": True})
        services.verifier.verify.assert_awaited_once_with("cs_1", "email-digest")

    def test_verify_denied(self):
        client = _client(_services(_settings(), decision_ok=False))

        resp = client.get("/api/verify", params={"p": "email-digest", "session_id": "cs_1"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": False})

    def test_verify_missing_params_passes_empty_strings(self):
        services = _services(_settings(), decision_ok=False)
        client = _client(services)

        resp = client.get("/verify")

        self.assertEqual(resp.json(), {"ok": False})
        services.verifier.verify.assert_awaited_once_with("", "")

    def test_verify_unexpected_error_collapses_to_false(self):
        services = _services(_settings())
        services.verifier.verify.side_effect = RuntimeError("boom")
        client = _client(services)

        resp = client.get("/verify", params={"p": "x", "session_id": "cs_1"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": False})
        self.assertNotIn("boom", resp.text)

    def test_verify_cors_header(self):
        client = _client(_services(_settings()))

        resp = client.get("/verify", params={"p": "x", "session_id": "cs_1"}, headers={"Origin": "https://shop.example"})

        self.assertEqual(resp.headers["access-control-allow-origin"], "*")


class TestDownloadEndpoint(unittest.TestCase):
    def test_redirect(self):
        location = "https://proj.supabase.co/storage/v1/object/sign/b/f.json?token=t&download="
        services = _services(
            _settings(),
            result=DownloadResult(outcome=DownloadOutcome.REDIRECT, location=location),
        )
        client = _client(services)

        resp = client.get("/download", params={"p": "email-digest", "session_id": "cs_1"}, follow_redirects=False)

        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp.headers["location"], location)
        services.issuer.issue.assert_awaited_once_with("cs_1", "email-digest")

    def test_denied(self):
        client = _client(_services(_settings()))

        resp = client.get("/api/download", params={"p": "email-digest", "session_id": "cs_1"})

        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.text, "Payment not verified.")

    def test_not_found(self):
        services = _services(
            _settings(),
            result=DownloadResult(outcome=DownloadOutcome.NOT_FOUND, message="Product file path not found."),
        )

        resp = _client(services).get("/download", params={"p": "x", "session_id": "cs_1"})

        self.assertEqual(resp.status_code, 404)

    def test_signing_error_body(self):
        message = "Could not generate download link: boom | response: {} | path: a.json | bucket: b"
        services = _services(
            _settings(),
            result=DownloadResult(outcome=DownloadOutcome.SIGNING_ERROR, message=message),
        )

        resp = _client(services).get("/download", params={"p": "x", "session_id": "cs_1"})

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.text, message)


class TestConfigEndpoint(unittest.TestCase):
    def test_public_config_only(self):
        client = _client(_services(_settings()))

        resp = client.get("/config")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {"publicApiUrl": "https://proj.supabase.co", "publicAnonKey": "anon-key"},
        )
        self.assertEqual(resp.headers["cache-control"], "no-cache")
        self.assertNotIn("service-key", resp.text)
        self.assertNotIn("sk_test_123", resp.text)

    def test_api_alias(self):
        resp = _client(_services(_settings())).get("/api/config")
        self.assertEqual(resp.status_code, 200)


class TestHealth(unittest.TestCase):
    def test_health(self):
        resp = _client(_services(_settings())).get("/health")
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_ready_without_ledger(self):
        resp = _client(_services(_settings())).get("/ready")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["ledger"], "disabled")

    def test_ready_ledger_down(self):
        services = _services(_settings())
        services.ledger = AsyncMock()
        services.ledger.ping.side_effect = UpstreamError("Database unavailable", upstream="database")

        resp = _client(services).get("/ready")

        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["status"], "not_ready")

    def test_request_id_echoed(self):
        resp = _client(_services(_settings())).get("/health", headers={"X-Request-Id": "req-42"})
        self.assertEqual(resp.headers["x-request-id"], "req-42")


class TestStaticSite(unittest.TestCase):
    def test_pages_served_and_secrets_blocked(self):
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "index.html"), "w") as f:
                f.write("<h1>Store</h1>")
            with open(os.path.join(tmp, ".env"), "w") as f:
                f.write("STRIPE_SECRET_KEY=sk_live_x")
            with open(os.path.join(tmp, "setup.mjs"), "w") as f:
                f.write("// script")

            settings = _settings(static_dir=tmp)
            client = _client(_services(settings), settings)

            index = client.get("/")
            env = client.get("/.env")
            script = client.get("/setup.mjs")
            api = client.get("/config")

        self.assertEqual(index.status_code, 200)
        self.assertIn("Store", index.text)
        self.assertEqual(env.status_code, 403)
        self.assertNotIn("sk_live_x", env.text)
        self.assertEqual(script.status_code, 403)
        self.assertEqual(api.status_code, 200)
