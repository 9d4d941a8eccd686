#!/usr/bin/env python3
"""
Run one connector worker of a clustered deployment.

Usage:
    python run_worker.py connector-0    # listens on 3000
    python run_worker.py connector-2    # listens on 3002

    curl http://127.0.0.1:3002/          -> http server ok!
    curl http://127.0.0.1:3002/status    -> {"server_id": "connector-2", ...}
"""

import asyncio
import pathlib
import signal
import sys

project_root = str(pathlib.Path(__file__).resolve().parents[2])
sys.path.append(project_root) if project_root not in sys.path else None

from httpfront import StaticApplication, create_component, load_config
from httpfront.filters import FilterRegistry
from httpfront.log import create_console_logger

BASE_DIR = pathlib.Path(__file__).resolve().parent


async def main(server_id: str) -> None:
    lg = create_console_logger("connector", level="debug")
    app = StaticApplication(base=BASE_DIR, server_type="connector", server_id=server_id)
    config = load_config(BASE_DIR / "etc" / "http.yaml", section="http")

    component = create_component(app, config, logger=lg, filters=FilterRegistry())

    stopping = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stopping.set)

    def ready() -> None:
        lg.info("ready", extra={"url": component.url})

    await component.start(on_ready=ready)
    await stopping.wait()
    # uvicorn may already have ended the listener on the same signal
    if component.is_running:
        await component.stop(on_stopped=lambda: lg.info("stopped"))


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "connector-0"))
