#!/usr/bin/env python3
"""
Pod Status Controller - Entry Point

A Kubernetes controller that watches Pod objects and logs their status,
re-verifying each pod every 10 seconds and retrying failures after 5.

Usage:
    python run.py [--namespace NAMESPACE] [--workers N] [--in-cluster]
"""

import argparse
import logging
import sys

from podwatch.client import create_context
from podwatch.config import DEFAULT_WORKERS, WATCH_NAMESPACE
from podwatch.controller import PodStatusController
from podwatch.types import StartupError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Pod Status Controller - Watch pods and report their status"
    )
    parser.add_argument(
        "--namespace", "-n",
        default=WATCH_NAMESPACE,
        help="Namespace to watch (default: all namespaces)"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of concurrent reconcile workers (default: {DEFAULT_WORKERS})"
    )
    parser.add_argument(
        "--in-cluster",
        action="store_true",
        help="Require in-cluster config (for running inside Kubernetes)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Set log level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Credentials must resolve before the loop starts
    try:
        context = create_context(in_cluster=args.in_cluster)
    except StartupError as e:
        logger.error(str(e))
        sys.exit(1)

    controller = PodStatusController(
        context,
        namespace=args.namespace,
        workers=args.workers
    )

    try:
        controller.run()
    except KeyboardInterrupt:
        controller.stop()
        logger.info("Controller stopped")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Controller error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
