import asyncio
import logging

from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

import config
from bot_instance import close_bot
from pipeline import OrderPipeline


async def main() -> None:
    pipeline = OrderPipeline.from_config()
    await pipeline.startup()
    logging.info(
        f"Environment: {config.RUNTIME_ENVIRONMENT.value}, "
        f"cart storage: {config.CART_STORAGE_BACKEND}, "
        f"atomic submission: {config.ORDER_SUBMISSION_ATOMIC}, "
        f"status relay: {config.ORDER_STATUS_RELAY_ENABLED}"
    )
    try:
        # Sessions attach through the pipeline; keep the process (and the relay) alive
        await asyncio.Event().wait()
    finally:
        await pipeline.shutdown()
        await close_bot()


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Stopped by user")
