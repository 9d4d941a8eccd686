"""
Before/after request filters.

Filters are plain callables, sync or async:

    before filter:  f(request) -> Response | None
    after filter:   f(request, response) -> Response | None

Before filters run in registration order ahead of route dispatch; a filter that
returns a Response answers the request on the spot and nothing further runs.
After filters run in registration order once a route (or the 404 fallback) has
produced a response; returning a Response replaces it, returning None keeps it.

Filters are registered on a FilterRegistry, usually the module-level
``default_filters``. The HTTP component keeps a reference to the registry and
copies its entries into a FilterChain when it starts: before filters ahead of
route loading, after filters once loading is done. A route module can therefore
add after filters from its factory, but a before filter it adds only takes
effect on the next start.

Example:
    from httpfront.filters import default_filters

    @default_filters.before
    async def stamp(request):
        request.state.started = time.monotonic()

    @default_filters.after
    def timing(request, response):
        elapsed = time.monotonic() - request.state.started
        response.headers["x-elapsed"] = f"{elapsed:.4f}"
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

BeforeFilter = Callable[[Request], Response | None | Awaitable[Response | None]]
AfterFilter = Callable[
    [Request, Response], Response | None | Awaitable[Response | None]
]


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class FilterRegistry:
    """Ordered before/after filter lists shared with route modules."""

    def __init__(self) -> None:
        self.before_filters: list[BeforeFilter] = []
        self.after_filters: list[AfterFilter] = []

    def before(self, fn: BeforeFilter) -> BeforeFilter:
        """Register a before filter. Usable as a decorator."""
        self.before_filters.append(fn)
        return fn

    def after(self, fn: AfterFilter) -> AfterFilter:
        """Register an after filter. Usable as a decorator."""
        self.after_filters.append(fn)
        return fn

    def clear(self) -> None:
        """Drop every registered filter."""
        self.before_filters.clear()
        self.after_filters.clear()


default_filters = FilterRegistry()


class FilterChain:
    """Filters applied to a running pipeline, in the order they were applied."""

    def __init__(self) -> None:
        self.before: list[BeforeFilter] = []
        self.after: list[AfterFilter] = []

    def use_before(self, fn: BeforeFilter) -> None:
        self.before.append(fn)

    def use_after(self, fn: AfterFilter) -> None:
        self.after.append(fn)

    def clear(self) -> None:
        self.before.clear()
        self.after.clear()

    async def run_before(self, request: Request) -> Response | None:
        """Run before filters; return the first Response one of them produces."""
        for fn in self.before:
            response = await _call(fn, request)
            if response is not None:
                return response
        return None

    async def run_after(self, request: Request, response: Response) -> Response:
        """Run after filters over a dispatched response."""
        for fn in self.after:
            replaced = await _call(fn, request, response)
            if replaced is not None:
                response = replaced
        return response


class FilterChainMiddleware(BaseHTTPMiddleware):
    """Starlette middleware wrapping route dispatch with a FilterChain."""

    def __init__(self, app: ASGIApp, chain: FilterChain) -> None:
        super().__init__(app)
        self.chain = chain

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await self.chain.run_before(request)
        if response is not None:
            return response

        response = await call_next(request)
        return await self.chain.run_after(request, response)
