#!/usr/bin/env python3
"""
Standalone migration runner.

    python -m welcomebot.infra.migrate

Run it before starting the application with storage_backend=postgres;
the application itself never creates tables.
"""
import asyncio
import sys

from welcomebot.infra.migrations_async import apply_migrations
from welcomebot.infra.db_async import init_pool, close_pool
from welcomebot.infra.logging_config import setup_logging, get_logger
from welcomebot.config import settings

setup_logging(level="INFO", use_json=False)
logger = get_logger(__name__)


async def main() -> int:
    logger.info(f"Migration runner: env={settings.app_env}")

    try:
        await init_pool()
        result = await apply_migrations()
    except Exception as exc:
        logger.critical(f"MIGRATION FAILED: {exc}", exc_info=True)
        return 1
    finally:
        await close_pool()

    if result["applied"]:
        for migration in result["applied"]:
            logger.info(f"  applied {migration}")
    else:
        logger.info("No new migrations to apply")

    return 0 if result["ok"] else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
