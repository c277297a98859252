"""Access token middleware: exposes the refreshed access token as X-Access-Token.

A slot is opened before the request reaches the routes; the auth dependency
writes the token issued for the sliding session into it.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.packages.library.core.security import consume_refreshed_token, open_refreshed_token_slot

HEADER = "X-Access-Token"


class AccessTokenHeaderMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        open_refreshed_token_slot()
        response = await call_next(request)
        token = consume_refreshed_token()
        if token:
            response.headers[HEADER] = token
        return response
