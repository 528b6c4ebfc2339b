"""
Builder service entrypoint.

Resolves configuration, initialises logging and serves the control API with
uvicorn. ``run()`` is what the ``dreamcup`` console script calls.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from . import CAPACITY, BuilderConfig
from .api.server import create_app
from .session import SessionManager
from .utils.logging import configure_logging

LOG = logging.getLogger(__name__)


async def serve(config: BuilderConfig, host: str = "127.0.0.1", port: int = 8080) -> None:
    """
    Run the control API inside an asyncio loop.

    Parameters
    ----------
    config:
        Builder configuration (cup capacity, catalog location).
    host, port:
        Bind address for the FastAPI/uvicorn server.
    """

    import uvicorn

    manager = SessionManager(capacity=config.capacity, idle_timeout=config.session_timeout)

    @asynccontextmanager
    async def app_lifespan(_app) -> AsyncIterator[None]:
        LOG.info("Builder service starting (profile=%s, capacity=%d)", config.profile, config.capacity)
        try:
            yield
        finally:
            LOG.info("Builder service shutting down with %d open session(s)", len(manager))

    app = create_app(manager=manager, config=config, lifespan=app_lifespan)
    server_config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_config=None,
        log_level="info",
        reload=False,
    )
    server = uvicorn.Server(config=server_config)

    def _handle_signal(signum: int, frame: Optional[object]) -> None:
        LOG.info("Received signal %s, shutting down server...", signum)
        server.should_exit = True

    for signame in ("SIGINT", "SIGTERM"):
        signal.signal(getattr(signal, signame), _handle_signal)

    await server.serve()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dreamcup drink builder server")
    parser.add_argument("--profile", default="default", help="configuration profile name")
    parser.add_argument("--host", default="127.0.0.1", help="bind host for the API server")
    parser.add_argument("--port", type=int, default=8080, help="bind port for the API server")
    parser.add_argument("--capacity", type=int, default=CAPACITY, help="number of layer slots per cup")
    parser.add_argument("--catalog", default=None, help="path to the ingredient catalog YAML file")
    parser.add_argument(
        "--session-timeout",
        type=float,
        default=3600.0,
        help="seconds before an idle builder session is dropped (0 keeps sessions until closed)",
    )
    parser.add_argument("--log-level", default="INFO", help="root log level")
    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)
    config = BuilderConfig(
        capacity=args.capacity,
        catalog_path=args.catalog,
        profile=args.profile,
        session_timeout=args.session_timeout or None,
    )

    try:
        asyncio.run(serve(config=config, host=args.host, port=args.port))
    except KeyboardInterrupt:
        LOG.info("Builder interrupted by user.")


if __name__ == "__main__":
    run()
