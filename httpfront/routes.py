"""
Route discovery and mounting.

Route modules live in ``<base>/app/servers/<server type>/routers``. Each ``.py``
file there exports a factory:

    # app/servers/connector/routers/status.py
    def create_router(app, http, component):
        router = http.APIRouter()

        @router.get("/status")
        async def status():
            return {"server": app.get_server_id(), "port": component.port}

        return router

``http`` is the fastapi module and ``component`` the HttpComponent loading the
route. A factory may return None when it only registers side effects (filters,
for instance); nothing is mounted for it then.

Files are mounted in directory-listing order, which the OS does not promise to
keep sorted. Route modules must not rely on mount order relative to each other;
deployments that need a fixed order register factories on a RouteTable instead.
"""

import importlib.util
import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from types import ModuleType
from typing import Any

import fastapi
from fastapi import APIRouter, FastAPI
from fastapi.responses import PlainTextResponse
from starlette.routing import Router

from .exceptions import RouteLoadError
from .log import LoggerLike

ROUTE_FACTORY_NAME = "create_router"
ROUTE_FILE_SUFFIX = ".py"
HEALTH_MESSAGE = "http server ok!"

RouteFactory = Callable[[Any, ModuleType, Any], Any]


class RouteTable:
    """
    Explicitly registered route factories, mounted in registration order.

    Example:
        routes = RouteTable()

        @routes.register
        def create_router(app, http, component):
            ...
    """

    def __init__(self) -> None:
        self._factories: list[tuple[str, RouteFactory]] = []

    def register(
        self, factory: RouteFactory | None = None, *, name: str | None = None
    ) -> Any:
        """Register a factory. Works bare, called, or as a decorator."""

        def decorator(fn: RouteFactory) -> RouteFactory:
            label = name or f"{fn.__module__}.{fn.__qualname__}"
            self._factories.append((label, fn))
            return fn

        if factory is not None:
            return decorator(factory)
        return decorator

    def __iter__(self) -> Iterator[tuple[str, RouteFactory]]:
        return iter(list(self._factories))

    def __len__(self) -> int:
        return len(self._factories)


def route_directory(app: Any) -> Path:
    """Route directory for the application's server type."""
    base = Path(app.get_base())
    return base / "app" / "servers" / app.get_server_type() / "routers"


def is_route_file(file_name: str) -> bool:
    """Check whether a directory entry names a route module."""
    return file_name.endswith(ROUTE_FILE_SUFFIX) and not file_name.startswith("_")


def health_router() -> APIRouter:
    """Router answering the root liveness check."""
    router = APIRouter()

    @router.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return HEALTH_MESSAGE

    return router


class RouteLoader:
    """
    Mounts the health route, registered factories and discovered route files.

    Loaded modules are cached per loader, so a component that is stopped and
    started again invokes the same factories without re-importing their files.
    """

    def __init__(
        self,
        logger: LoggerLike,
        table: RouteTable | None = None,
        module_prefix: str = "httpfront_routes",
    ) -> None:
        self.logger = logger
        self.table = table if table is not None else RouteTable()
        self.module_prefix = module_prefix
        self._modules: dict[Path, ModuleType] = {}

    def load_routes(
        self, http: FastAPI, app: Any, component: Any, route_dir: Path | None = None
    ) -> list[tuple[str, Any]]:
        """
        Mount every route onto ``http``.

        Args:
            http: FastAPI application being assembled
            app: Owning application (passed to factories)
            component: HttpComponent (passed to factories)
            route_dir: Directory to scan (default: route_directory(app))

        Returns:
            (name, handler) pairs in mount order, health route first

        Raises:
            RouteLoadError: If the directory is missing, a module fails to
                import, lacks a factory, or returns something unmountable
        """
        path = Path(route_dir) if route_dir is not None else route_directory(app)
        if not path.is_dir():
            raise RouteLoadError("Cannot find route path", path=path)

        health = health_router()
        self.mount(http, "/", health)
        mounted: list[tuple[str, Any]] = [("/", health)]

        for name, factory in self.table:
            handler = factory(app, fastapi, component)
            if handler is not None:
                self.mount(http, name, handler)
                mounted.append((name, handler))

        for file_name in os.listdir(path):
            if not is_route_file(file_name):
                continue

            self.logger.info("load router file", extra={"file": file_name})
            factory = self.factory_from_file(path / file_name, app)
            handler = factory(app, fastapi, component)
            if handler is not None:
                self.mount(http, file_name, handler)
                mounted.append((file_name, handler))

        return mounted

    def factory_from_file(self, file_path: Path, app: Any) -> RouteFactory:
        """Import a route file and return its factory."""
        module = self.load_module(file_path, app)
        factory = getattr(module, ROUTE_FACTORY_NAME, None)
        if not callable(factory):
            raise RouteLoadError(
                f"route module does not define {ROUTE_FACTORY_NAME}()", path=file_path
            )
        return factory

    def load_module(self, file_path: Path, app: Any) -> ModuleType:
        """Import a route file once, caching the module."""
        if file_path in self._modules:
            return self._modules[file_path]

        full_name = f"{self.module_prefix}.{app.get_server_type()}.{file_path.stem}"
        spec = importlib.util.spec_from_file_location(full_name, file_path)
        if spec is None or spec.loader is None:
            raise RouteLoadError("cannot load route module", path=file_path)

        module = importlib.util.module_from_spec(spec)
        sys.modules[full_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(full_name, None)
            raise RouteLoadError("route module failed to import", path=file_path) from e

        self._modules[file_path] = module
        return module

    def mount(self, http: FastAPI, name: str, handler: Any) -> None:
        """Mount a factory result at the root path."""
        if isinstance(handler, APIRouter):
            http.include_router(handler)
        elif isinstance(handler, Router):
            http.router.routes.extend(handler.routes)
        else:
            raise RouteLoadError(
                "route factory must return an APIRouter, a Router or None",
                route=name,
                type=type(handler).__name__,
            )
