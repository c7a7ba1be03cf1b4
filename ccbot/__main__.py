"""
ccbot launcher
Run with ``python -m ccbot`` or the ``ccbot`` console script
"""

import asyncio
import logging

from ccbot.bot import main

logger = logging.getLogger("ccbot")


def run() -> None:
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Bot stopped manually")
    except Exception as e:
        logger.error(f"Bot crashed: {e}", exc_info=e)
        raise


if __name__ == "__main__":
    run()
