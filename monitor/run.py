#!/usr/bin/env python3
"""
Entry point for the standalone altitude monitor.
"""

import logging
import signal
import threading

from prometheus_client import start_http_server

from monitor.config import METRICS_PORT
from monitor.factory import create_monitor

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def start_metrics_server():
    """Start Prometheus metrics server."""
    try:
        start_http_server(METRICS_PORT)
        logger.info(f"Prometheus metrics server started on port {METRICS_PORT}")
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")


def main():
    logger.info("=" * 50)
    logger.info("AltiGuard Altitude Monitor - Starting")
    logger.info("=" * 50)

    start_metrics_server()

    monitor = create_monitor()
    shutdown = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        shutdown.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    monitor.start()
    shutdown.wait()
    monitor.close()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    main()
