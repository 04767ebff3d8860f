"""Entry point - starts the FastAPI server."""

import asyncio
import logging

import structlog
import uvicorn

from funnelboard_service.rest.app import create_app
from funnelboard_service.settings import settings

logger = structlog.get_logger()


def configure_logging() -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
    )


async def main() -> None:
    configure_logging()

    app = create_app()
    config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=settings.rest_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)

    logger.info("starting_service", rest_port=settings.rest_port)
    await server.serve()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
