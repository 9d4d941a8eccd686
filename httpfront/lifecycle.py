"""
HTTP listener lifecycle.

HttpComponent turns a ServerConfig into a running FastAPI listener served by
uvicorn, inside the caller's asyncio event loop:

    Stopped -> Starting -> Running -> Stopping -> Stopped

Construction resolves the listen port (cluster index arithmetic included) and
reads TLS material, so configuration mistakes surface before start() is ever
called. start() then assembles the pipeline in a fixed sequence

    before filters -> health route, registered and discovered routes
                   -> after filters -> socket bind

and only reports ready once the socket is bound. Callbacks handed to start()
and after_start() are scheduled on the next loop iteration, never run inline.

A start() that fails or is cancelled shuts uvicorn down again before returning
to Stopped, and a listener that uvicorn ends on its own (its signal handlers, a
crash) is moved to Stopped with a warning. Stopped always means unbound.

Example:
    app = StaticApplication(base="/srv/game", server_type="connector",
                            server_id="connector-2")
    component = create_component(app, {"port": "3000++", "isCluster": True})

    await component.start(on_ready=lambda: print("listening on", component.url))
    ...
    await component.stop()
"""

import asyncio
import socket
import ssl
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

import uvicorn
from fastapi import FastAPI
from starlette.middleware.gzip import GZipMiddleware

from .config import ServerConfig
from .exceptions import LifecycleError
from .filters import (
    FilterChain,
    FilterChainMiddleware,
    FilterRegistry,
    default_filters,
)
from .log import LoggerLike, create_console_logger, uvicorn_log_config
from .middleware import MethodOverrideMiddleware
from .ports import PortResolver
from .routes import RouteLoader, RouteTable
from .tls import TLSConfigurator, TLSCredentials

# Poll interval while waiting for uvicorn to finish startup
STARTUP_POLL_SECS = 0.01


class ListenerState(str, Enum):
    """States of the listener lifecycle."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


def _bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.create_server((host, port), family=family)
    sock.set_inheritable(True)
    return sock


class HttpComponent:
    """
    HTTP front-end of one server process.

    Attributes:
        app: Owning application (base dir, server type, server id)
        config: Immutable listener configuration
        logger: Logging capability
        host: Bind address
        port: Effective listen port after cluster resolution
        credentials: TLS material when use_ssl, else None
        ssl_context: Context built from credentials, served as is
        filters: Registry the before/after filters are taken from
        http: FastAPI application the pipeline is assembled on
        mounted: (name, handler) pairs mounted by the last start()
    """

    def __init__(
        self,
        app: Any,
        config: ServerConfig | None = None,
        *,
        logger: LoggerLike | None = None,
        filters: FilterRegistry | None = None,
        routes: RouteTable | None = None,
    ) -> None:
        """
        Initialize the component.

        Args:
            app: Application providing get_base/get_server_type/get_server_id
            config: Listener configuration (default: ServerConfig())
            logger: Logging capability (default: console logger)
            filters: Filter registry (default: httpfront.filters.default_filters)
            routes: Explicit route factories mounted before discovered files

        Raises:
            ConfigError: If the cluster port or server id is malformed
            TLSError: If SSL is enabled and key/cert cannot be read or do
                not form a valid pair
        """
        self.app = app
        self.config = config if config is not None else ServerConfig()
        self.logger: LoggerLike = (
            logger if logger is not None else create_console_logger()
        )
        self.host = self.config.host

        server_id = app.get_server_id() if self.config.is_cluster else None
        self.port = PortResolver(self.config.is_cluster).resolve(
            self.config.port, server_id
        )

        self.credentials: TLSCredentials | None = None
        self.ssl_context: ssl.SSLContext | None = None
        if self.config.use_ssl:
            self.credentials = TLSConfigurator(app.get_base()).configure(
                self.config.key_file,  # type: ignore[arg-type]
                self.config.cert_file,  # type: ignore[arg-type]
            )
            self.ssl_context = self.credentials.ssl_context()

        self.filters = filters if filters is not None else default_filters
        self.route_loader = RouteLoader(self.logger, routes)
        self.mounted: list[tuple[str, Any]] = []

        self._chain = FilterChain()
        self.http = self._build_http()
        self._state = ListenerState.STOPPED
        self._assembled = False
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._socket: socket.socket | None = None

    @property
    def state(self) -> ListenerState:
        """Current lifecycle state."""
        return self._state

    @property
    def use_ssl(self) -> bool:
        return self.config.use_ssl

    @property
    def is_running(self) -> bool:
        return self._state is ListenerState.RUNNING

    @property
    def bound_address(self) -> tuple[str, int] | None:
        """(host, port) the listener is bound to, or None when not bound."""
        if self._socket is None or self._socket.fileno() == -1:
            return None
        addr = self._socket.getsockname()
        return addr[0], addr[1]

    @property
    def url(self) -> str:
        """Base URL of the listener, using the bound port once available."""
        address = self.bound_address
        port = address[1] if address else self.port
        return f"{self.config.scheme}://{self.host}:{port}"

    def _build_http(self) -> FastAPI:
        """Create the FastAPI app with transport middleware installed."""
        http = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

        # add_middleware wraps outward: the last one added sees requests first
        http.add_middleware(FilterChainMiddleware, chain=self._chain)
        if self.config.compression:
            http.add_middleware(
                GZipMiddleware, minimum_size=self.config.compression_min_size
            )
        if self.config.method_override:
            http.add_middleware(MethodOverrideMiddleware)
        return http

    def _uvicorn_config(self) -> uvicorn.Config:
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "log_level": self.config.log_level,
            "log_config": uvicorn_log_config(self.config.log_level),
            "proxy_headers": self.config.trust_proxy,
        }
        if self.config.trust_proxy:
            kwargs["forwarded_allow_ips"] = "*"
        config = uvicorn.Config(self.http, **kwargs)
        if self.ssl_context is not None:
            # Loaded configs keep their ssl attribute; serve() does not reload
            config.load()
            config.ssl = self.ssl_context
        return config

    def _assemble(self) -> None:
        """Apply filters and routes to the pipeline, in order."""
        if self._assembled:
            self._chain.clear()
            self.http = self._build_http()
        self._assembled = True

        for before in self.filters.before_filters:
            self._chain.use_before(before)

        self.mounted = self.route_loader.load_routes(self.http, self.app, self)

        # Read after route loading: route modules may register after filters
        for after in self.filters.after_filters:
            self._chain.use_after(after)

    async def _bind(self) -> None:
        """Bind the socket and wait until uvicorn accepts connections."""
        try:
            sock = _bind_socket(self.host, self.port)
        except OSError as e:
            self.logger.error(
                "http listener failed to bind",
                extra={"host": self.host, "port": self.port, "exception": e},
            )
            raise LifecycleError(
                "http listener failed to bind", host=self.host, port=self.port
            ) from e

        server = uvicorn.Server(self._uvicorn_config())
        task = asyncio.create_task(server.serve(sockets=[sock]))

        try:
            while not server.started:
                if task.done():
                    raise LifecycleError(
                        "http listener stopped during startup",
                        host=self.host,
                        port=self.port,
                    ) from task.exception()
                await asyncio.sleep(STARTUP_POLL_SECS)
        except BaseException:
            # Failed or cancelled start: no half-started listener stays bound
            await self._shutdown_serve(server, task)
            sock.close()
            raise

        self._socket = sock
        self._server = server
        self._serve_task = task
        task.add_done_callback(self._on_serve_done)

    async def _shutdown_serve(
        self, server: uvicorn.Server, task: "asyncio.Task[None]"
    ) -> None:
        """Take a uvicorn server through its own shutdown, started or not."""
        # should_exit is only acted on once startup has finished
        while not (server.started or task.done()):
            await asyncio.sleep(STARTUP_POLL_SECS)
        server.should_exit = True
        await asyncio.wait([task])

    def _on_serve_done(self, task: "asyncio.Task[None]") -> None:
        if self._state is not ListenerState.RUNNING:
            return

        # uvicorn exited on its own (its signal handlers, or a crash)
        error = None if task.cancelled() else task.exception()
        if self._socket is not None:
            self._socket.close()
        self._socket = None
        self._server = None
        self._serve_task = None
        self._state = ListenerState.STOPPED

        extra: dict[str, Any] = {
            "server_id": self.app.get_server_id(),
            "port": self.port,
        }
        if error is not None:
            extra["exception"] = error
        self.logger.warning("http listener exited while running", extra=extra)

    async def start(self, on_ready: Callable[[], Any] | None = None) -> None:
        """
        Assemble the pipeline and bind the listener.

        Args:
            on_ready: Called on the next loop iteration after the socket is bound

        Raises:
            LifecycleError: If not stopped, or the socket cannot be bound
            RouteLoadError: If the route directory or a route module is bad
        """
        if self._state is not ListenerState.STOPPED:
            raise LifecycleError(
                "http component can only start when stopped", state=self._state.value
            )

        self._state = ListenerState.STARTING
        try:
            self._assemble()
            await self._bind()
        except BaseException:
            self._state = ListenerState.STOPPED
            raise

        self._state = ListenerState.RUNNING
        self.logger.info(
            "Http start",
            extra={"server_id": self.app.get_server_id(), "url": self.url},
        )
        self.logger.info("Http start success")

        if on_ready is not None:
            asyncio.get_running_loop().call_soon(on_ready)

    async def after_start(self, on_done: Callable[[], Any] | None = None) -> None:
        """Post-bind hook; schedules on_done on the next loop iteration."""
        if on_done is not None:
            asyncio.get_running_loop().call_soon(on_done)

    async def stop(
        self, force: bool = False, on_stopped: Callable[[], Any] | None = None
    ) -> None:
        """
        Close the listener.

        uvicorn stops accepting connections and drains open ones. ``force`` is
        accepted for callers that distinguish abrupt shutdown, but both modes
        close the listener the same way here.

        Stopping a stopped component logs a warning and does nothing; its
        on_stopped is not called.

        Args:
            force: Abrupt shutdown requested (same behavior as graceful)
            on_stopped: Called once, after the socket is closed

        Raises:
            LifecycleError: If the component is starting or already stopping
        """
        if self._state is ListenerState.STOPPED:
            self.logger.warning("Http stop ignored, already stopped")
            return
        if self._state is not ListenerState.RUNNING:
            raise LifecycleError(
                "http component can only stop when running", state=self._state.value
            )

        self.logger.debug("Http stop", extra={"force": force})
        self._state = ListenerState.STOPPING
        assert self._server is not None and self._serve_task is not None
        self._server.should_exit = True
        try:
            await self._serve_task
        finally:
            if self._socket is not None:
                self._socket.close()
            self._socket = None
            self._server = None
            self._serve_task = None
            self._state = ListenerState.STOPPED

        if on_stopped is not None:
            on_stopped()


def create_component(
    app: Any,
    options: ServerConfig | Mapping[str, Any] | None = None,
    *,
    logger: LoggerLike | None = None,
    filters: FilterRegistry | None = None,
    routes: RouteTable | None = None,
) -> HttpComponent:
    """
    Build an HttpComponent from an application and http options.

    Args:
        app: Owning application
        options: ServerConfig, or a mapping accepted by ServerConfig.from_dict
        logger: Logging capability (default: console logger)
        filters: Filter registry (default: default_filters)
        routes: Explicit route factories

    Returns:
        A stopped HttpComponent
    """
    if isinstance(options, ServerConfig):
        config = options
    else:
        config = ServerConfig.from_dict(options)
    return HttpComponent(app, config, logger=logger, filters=filters, routes=routes)
