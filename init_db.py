import asyncio
import logging
import sys

from accounts.app.core.config import get_settings
from accounts.app.core.logging import setup_logging
from accounts.app.db.base import create_tables

logger = logging.getLogger(__name__)


async def init_models(reset: bool = False):
    # reset=True drops existing tables first - DEV MODE ONLY
    await create_tables(drop_existing=reset)
    logger.info("Tables created on %s", get_settings().DATABASE_URL.split("@")[-1])


if __name__ == "__main__":
    setup_logging(get_settings())
    asyncio.run(init_models(reset="--reset" in sys.argv))
