"""
Storefront static files (index.html, download.html, ...).
Secrets and build scripts that may sit next to the pages are never served.
"""
import re

from fastapi.responses import PlainTextResponse
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

_BLOCKED = re.compile(r"(^|/)\.env($|\.)|\.mjs$")


class SiteStaticFiles(StaticFiles):
    async def get_response(self, path: str, scope: Scope) -> Response:
        if ".." in path or _BLOCKED.search(path):
            return PlainTextResponse("Forbidden", status_code=403)
        return await super().get_response(path, scope)
