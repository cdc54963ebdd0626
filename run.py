#!/usr/bin/env python3
"""
Payments Engine API Entry Point

Starts the FastAPI server with the host and port from configuration
(PAYMENTS_API_HOST / PAYMENTS_API_PORT, default 0.0.0.0:8090).
"""

import sys

from payments_engine.api import run_server
from payments_engine.config import get_config
from payments_engine.logging_config import setup_logging


if __name__ == "__main__":
    config = get_config()
    logger = setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    logger.info(f"Starting Payments Engine API on {config.api_host}:{config.api_port}")

    try:
        run_server()
    except KeyboardInterrupt:
        logger.info("Shutting down Payments Engine API")
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)
