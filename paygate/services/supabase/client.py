"""
Supabase client wrapper using httpx async client.
Covers the three calls the service needs: PostgREST select, PostgREST insert,
and Storage signed URL creation. Always authenticates with the service key.
"""
import time
from typing import Any

import httpx
from pydantic import ValidationError

from paygate.core.errors import UpstreamError
from paygate.schemas.storage import SignedUrlResponse
from paygate.utils.metrics import record_upstream


UNIQUE_VIOLATION = "23505"  # PostgreSQL unique_violation


class SupabaseClient:
    def __init__(self, http: httpx.AsyncClient, url: str, service_key: str) -> None:
        self._http = http
        self._url = url.rstrip("/")
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }

    @property
    def url(self) -> str:
        return self._url

    async def _request(
        self,
        upstream: str,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        start = time.monotonic()
        try:
            resp = await self._http.request(method, url, headers={**self._headers, **(headers or {})}, **kwargs)
        except httpx.HTTPError as e:
            record_upstream(upstream, "error", time.monotonic() - start)
            raise UpstreamError(f"{upstream} request failed: {type(e).__name__}", upstream=upstream) from e
        record_upstream(upstream, str(resp.status_code), time.monotonic() - start)
        return resp

    @staticmethod
    def _json(resp: httpx.Response, upstream: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(
                f"{upstream} returned non-JSON body",
                upstream=upstream,
                status_code=resp.status_code,
                body=resp.text,
            ) from e

    # ------------------------------------------------------------------
    # PostgREST
    # ------------------------------------------------------------------

    async def select(
        self,
        table: str,
        filters: dict[str, str],
        columns: str,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        GET /rest/v1/{table}?col=eq.value&select=columns.
        Equality filters only; values are encoded by httpx.
        """
        params = {key: f"eq.{value}" for key, value in filters.items()}
        params["select"] = columns
        if limit is not None:
            params["limit"] = str(limit)
        resp = await self._request("supabase_rest", "GET", f"{self._url}/rest/v1/{table}", params=params)
        data = self._json(resp, "supabase_rest")
        if resp.is_error or not isinstance(data, list):
            raise UpstreamError(
                f"Unexpected response from {table} query",
                upstream="supabase_rest",
                status_code=resp.status_code,
                body=data,
            )
        return data

    async def insert(self, table: str, row: dict[str, Any]) -> bool:
        """
        POST /rest/v1/{table} with Prefer: return=minimal.
        Returns True when the row was created, False on a unique-key conflict.
        """
        resp = await self._request(
            "supabase_rest",
            "POST",
            f"{self._url}/rest/v1/{table}",
            headers={"Prefer": "return=minimal"},
            json=row,
        )
        if resp.status_code == 409:
            return False
        if resp.is_error:
            try:
                body: Any = resp.json()
            except ValueError:
                body = resp.text
            if isinstance(body, dict) and body.get("code") == UNIQUE_VIOLATION:
                return False
            raise UpstreamError(
                f"Insert into {table} failed",
                upstream="supabase_rest",
                status_code=resp.status_code,
                body=body,
            )
        return True

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    async def create_signed_url(self, bucket: str, encoded_path: str, expires_in: int) -> str:
        """
        POST /storage/v1/object/sign/{bucket}/{path} {"expiresIn": N}.
        encoded_path must already be percent-encoded per segment.
        Returns signedURL (relative to /storage/v1); raises UpstreamError with the raw body otherwise.
        """
        resp = await self._request(
            "supabase_storage",
            "POST",
            f"{self._url}/storage/v1/object/sign/{bucket}/{encoded_path}",
            json={"expiresIn": expires_in},
        )
        data = self._json(resp, "supabase_storage")
        try:
            signed = SignedUrlResponse.model_validate(data)
        except ValidationError:
            signed = SignedUrlResponse()
        if not signed.signed_url:
            raise UpstreamError(
                "Storage did not return a signed URL",
                upstream="supabase_storage",
                status_code=resp.status_code,
                body=data,
            )
        return signed.signed_url
