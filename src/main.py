"""
IGD Port Mapping Scanner - Main Entry Point
"""

import argparse
import asyncio
import sys
import logging
import os

from config_loader import load_config, apply_cli_overrides, setup_logging
from services.portmap_scanner import PortMapScanner

logger = logging.getLogger(__name__)

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List the NAT port mappings of a UPnP Internet Gateway Device")
    parser.add_argument('--host', help="Gateway address to probe")
    parser.add_argument('-p', '--port', help="SSDP port to probe (default :1900)")
    parser.add_argument('--config', default=os.environ.get('CONFIG_FILE'),
                        help="YAML configuration file (default: $CONFIG_FILE)")
    parser.add_argument('--max-entries', type=int, help="Stop after this many mappings per service (default 50)")
    parser.add_argument('--log-level', help="DEBUG, INFO, WARNING or ERROR")
    return parser.parse_args(argv)

async def main(argv=None) -> int:
    """Main entry point"""
    args = parse_args(argv)

    try:
        config = apply_cli_overrides(load_config(args.config), args)
    except Exception as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config)

    try:
        scanner = PortMapScanner(config)
        await scanner.run()
    except Exception as e:
        logger.error(f"Scan failed: {type(e).__name__}: {e}")
        logger.debug("Scan failure traceback", exc_info=True)
        return 1

    return 0

def run():
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nScan interrupted by user")
        sys.exit(1)

if __name__ == "__main__":
    run()
