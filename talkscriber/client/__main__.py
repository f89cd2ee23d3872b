"""
Main entry point for running the client as a module.
Run with: python -m talkscriber.client {stt,tts} ...
"""

import asyncio
import sys
from dotenv import load_dotenv
from talkscriber.client.simple_client import main
from utils.logging_config import auto_configure, get_logger

logger = get_logger(__name__)


def run() -> None:
    # TALKSCRIBER_API_KEY and friends may live in a .env file
    load_dotenv()
    auto_configure()
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("🔌 Client stopped by user")
        sys.exit(0)


if __name__ == "__main__":
    run()
