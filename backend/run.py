#!/usr/bin/env python3
"""
Pathz Relay Application Runner
"""

import uvicorn
from loguru import logger
import sys

from pathz_api.config import settings


def main():
    """Main application entry point"""
    logger.info("Starting Pathz Relay API...")
    logger.info(f"Watching network: {settings.alchemy_network}")
    logger.info(f"Server will run on: http://{settings.host}:{settings.port}")

    try:
        uvicorn.run(
            "pathz_api.main:app",
            host=settings.host,
            port=settings.port,
            reload=False,
            log_level=settings.log_level.lower(),
            access_log=True
        )
    except KeyboardInterrupt:
        logger.info("Application stopped by user")
    except Exception as e:
        logger.error(f"Failed to start application: {e}")
        logger.error(f"Error details: {type(e).__name__}")
        sys.exit(1)


if __name__ == "__main__":
    main()
