"""
Signed download URLs from Supabase Storage.

Object paths are percent-encoded segment by segment: filenames may contain
brackets, spaces and other URL-reserved characters, while "/" must stay a separator.
"""
from urllib.parse import quote

from paygate.core.errors import UpstreamError
from paygate.services.supabase.client import SupabaseClient

SIGNED_URL_TTL_SECONDS = 3600
# Appended to the signed URL so the browser saves the file instead of rendering it
DOWNLOAD_MARKER = "download="

# Same set encodeURIComponent leaves alone, besides alphanumerics and "-_.~"
_SEGMENT_SAFE = "!*'()"


def encode_object_path(file_path: str) -> str:
    return "/".join(quote(segment, safe=_SEGMENT_SAFE) for segment in file_path.split("/"))


def with_download_marker(url: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{DOWNLOAD_MARKER}"


class SigningError(UpstreamError):
    """Signing failed; carries the identifiers needed for operator troubleshooting."""

    def __init__(self, cause: UpstreamError, *, bucket: str, encoded_path: str):
        super().__init__(
            str(cause),
            upstream=cause.upstream,
            status_code=cause.status_code,
            body=cause.body,
        )
        self.bucket = bucket
        self.encoded_path = encoded_path


class StorageSigner:
    def __init__(self, client: SupabaseClient, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        return self._bucket

    async def create_download_url(self, file_path: str, expires_in: int = SIGNED_URL_TTL_SECONDS) -> str:
        """
        Single signing attempt, no retry.
        Returns an absolute URL with the download marker appended.
        """
        encoded_path = encode_object_path(file_path)
        try:
            signed_url = await self._client.create_signed_url(self._bucket, encoded_path, expires_in)
        except UpstreamError as e:
            raise SigningError(e, bucket=self._bucket, encoded_path=encoded_path) from e
        # signedURL is relative to /storage/v1 (e.g. /object/sign/...?token=...)
        return with_download_marker(f"{self._client.url}/storage/v1{signed_url}")
