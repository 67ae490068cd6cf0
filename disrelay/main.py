"""disrelay: main entry point.

This is the only file that knows about concrete implementations.
It wires together the core, relay, transport, and API layers.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TextIO

import structlog
from fastapi import FastAPI

from disrelay.api.monitoring import router as monitoring_router
from disrelay.api.pdus import router as pdus_router
from disrelay.api.relay import router as relay_router
from disrelay.config import AppConfig, load_config
from disrelay.core.processor import PduProcessor
from disrelay.core.stats import ServerStats
from disrelay.relay.hub import RelayHub
from disrelay.transport.udp import start_udp_listener

log = structlog.get_logger()

# Module-level singletons (set during startup)
_processor: PduProcessor | None = None
_hub: RelayHub | None = None
_stats: ServerStats | None = None
_config: AppConfig | None = None
_log_file: TextIO | None = None


def get_processor() -> PduProcessor:
    assert _processor is not None, "Server not initialized"
    return _processor


def get_hub() -> RelayHub:
    assert _hub is not None, "Server not initialized"
    return _hub


def get_stats() -> ServerStats:
    assert _stats is not None, "Server not initialized"
    return _stats


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


def _setup_logging(config: AppConfig) -> None:
    """Configure structlog based on the logging config.

    Safe to call repeatedly; a log file opened by an earlier call is closed.
    """
    global _log_file

    previous = _log_file
    _log_file = None
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=not config.logging.file))

    if config.logging.file:
        _log_file = open(config.logging.file, "a")
        logger_factory = structlog.WriteLoggerFactory(file=_log_file)
    else:
        logger_factory = structlog.PrintLoggerFactory(file=sys.stdout)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
        logger_factory=logger_factory,
    )

    if previous is not None:
        previous.close()


def _close_log_file() -> None:
    global _log_file

    if _log_file is not None:
        _log_file.close()
        _log_file = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _processor, _hub, _stats, _config

    _config = load_config()
    _setup_logging(_config)

    log.info("server_starting",
             env=_config.server.env,
             relay_mode=_config.relay.mode,
             udp_address=_config.udp.address,
             udp_port=_config.udp.port)

    # Create components
    _stats = ServerStats(active_window_seconds=_config.limits.active_window_seconds)
    _hub = RelayHub(stats=_stats)
    _processor = PduProcessor(hub=_hub, stats=_stats, relay_mode=_config.relay.mode)

    # Start the DIS listener
    transport, _ = await start_udp_listener(_config.udp, _processor)

    log.info("server_started",
             host=_config.server.host,
             port=_config.server.port)

    yield

    # Shutdown
    transport.close()
    log.info("server_stopped")
    _close_log_file()


app = FastAPI(
    title="disrelay",
    description="DIS Entity State PDU decoder and WebSocket relay",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(pdus_router)
app.include_router(monitoring_router)
app.include_router(relay_router)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    config = load_config()
    uvicorn.run("disrelay.main:app", host=config.server.host, port=config.server.port)
