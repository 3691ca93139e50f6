# relay/server.py
# Process supervisor: bind, serve, and turn fatal errors into a logged exit(1).
from __future__ import annotations
import asyncio
import errno
import logging
import socket
import sys
import threading
from typing import Any, Dict, Optional

import uvicorn

from .config import ConfigError, Settings, get_settings
from .main import create_app

logger = logging.getLogger("uvicorn.error")


def bind_socket(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


class Supervisor:
    """Runs one uvicorn server and records whether anything fatal happened."""

    def __init__(self, server: uvicorn.Server):
        self.server = server
        self.failed = False

    def loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exc = context.get("exception")
        logger.error("Unhandled async error: %s", context.get("message"), exc_info=exc)
        self.failed = True
        self.server.should_exit = True

    def excepthook(self, exc_type, exc, tb) -> None:
        logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
        self.failed = True

    def thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        name = args.thread.name if args.thread is not None else "?"
        logger.critical(
            "Uncaught exception in thread %s", name,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        self.failed = True
        self.server.should_exit = True

    async def serve(self, sock: socket.socket) -> None:
        asyncio.get_running_loop().set_exception_handler(self.loop_exception_handler)
        await self.server.serve(sockets=[sock])


def main(settings: Optional[Settings] = None) -> int:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    try:
        app = create_app(settings)
    except ConfigError as e:
        logger.error("Refusing to start: %s", e)
        return 1

    try:
        sock = bind_socket(settings.HOST, settings.PORT)
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error(
                "Port %s is already in use. Please stop the other process or use a different port.",
                settings.PORT,
            )
        else:
            logger.error("Server error: %s", e)
        return 1

    config = uvicorn.Config(app, log_level=settings.LOG_LEVEL.lower())
    supervisor = Supervisor(uvicorn.Server(config))
    sys.excepthook = supervisor.excepthook
    threading.excepthook = supervisor.thread_excepthook
    logger.info("Captcha relay running on http://localhost:%s", settings.PORT)
    try:
        asyncio.run(supervisor.serve(sock))
    except Exception:
        supervisor.excepthook(*sys.exc_info())
    finally:
        sock.close()
    return 1 if supervisor.failed else 0


def run() -> None:
    sys.exit(main())
