"""
Transport middleware installed ahead of the filter chain.

MethodOverrideMiddleware lets clients that can only send GET/POST (HTML forms,
old proxies) reach PUT/PATCH/DELETE routes by POSTing with an override header.
"""

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

OVERRIDE_HEADERS = ("x-http-method-override", "x-http-method", "x-method-override")

ALLOWED_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}
)


class MethodOverrideMiddleware:
    """Rewrite the method of POST requests carrying an override header."""

    def __init__(
        self, app: ASGIApp, headers: tuple[str, ...] = OVERRIDE_HEADERS
    ) -> None:
        self.app = app
        self.headers = headers

    def override_for(self, scope: Scope) -> str | None:
        """Return the overriding method for a request scope, if any."""
        if scope["type"] != "http" or scope["method"] != "POST":
            return None

        headers = Headers(scope=scope)
        for name in self.headers:
            value = headers.get(name)
            if value:
                method = value.strip().upper()
                if method in ALLOWED_METHODS:
                    return method
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = self.override_for(scope)
        if method is not None:
            scope = dict(scope)
            scope["original_method"] = scope["method"]
            scope["method"] = method
        await self.app(scope, receive, send)
