"""Command-line interface entry point for the ARBA parcel lookup."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Iterable

import uvicorn
from dotenv import load_dotenv

from arba_lookup.alerts.mailer import Mailer
from arba_lookup.config import load_settings
from arba_lookup.errors import DeliveryError, NoResultsError, ParcelLookupError
from arba_lookup.logging_config import get_logger
from arba_lookup.models import Coordinate
from arba_lookup.portal.lookup import lookup_parcels

LOGGER = get_logger(__name__)

EXIT_OK = 0
EXIT_LOOKUP_FAILED = 1
EXIT_NO_RESULTS = 2
EXIT_DELIVERY_FAILED = 3


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Look up ARBA cadastral parcels for a coordinate."
    )
    parser.add_argument("--lat", type=float, help="Latitude in decimal degrees.")
    parser.add_argument("--lng", type=float, help="Longitude in decimal degrees.")
    parser.add_argument(
        "--email",
        help="Send the result to this address instead of only printing it.",
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML configuration file (default: arba_lookup/config.yml).",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP intake API instead of running a single lookup.",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address for --serve.")
    parser.add_argument("--port", type=int, default=80, help="Port for --serve (default: 80).")

    args = parser.parse_args(list(argv) if argv is not None else None)

    if not args.serve and (args.lat is None or args.lng is None):
        parser.error("--lat and --lng are required unless --serve is given")
    if args.port <= 0:
        parser.error("--port must be a positive integer")
    return args


async def _run_lookup(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    coordinate = Coordinate(lat=args.lat, lng=args.lng)

    try:
        result = await lookup_parcels(coordinate, settings)
    except NoResultsError as exc:
        LOGGER.info("No parcels found: %s", exc)
        print(json.dumps({"parcels": [], "districtCode": "", "municipalityName": ""}))
        return EXIT_NO_RESULTS
    except ParcelLookupError as exc:
        LOGGER.error("Lookup failed: %s", exc)
        return EXIT_LOOKUP_FAILED

    print(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))

    if args.email:
        try:
            Mailer().send_lookup(args.email, result)
        except DeliveryError as exc:
            LOGGER.error("Parcels found but email failed: %s", exc)
            return EXIT_DELIVERY_FAILED
    return EXIT_OK


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    load_dotenv()

    if args.serve:
        if args.config:
            os.environ["ARBA_CONFIG"] = args.config
        uvicorn.run("arba_lookup.api:app", host=args.host, port=args.port)
        return

    try:
        code = asyncio.run(_run_lookup(args))
    except KeyboardInterrupt:  # pragma: no cover - interactive safety
        LOGGER.info("Interrupted by user")
        code = EXIT_LOOKUP_FAILED
    sys.exit(code)


if __name__ == "__main__":
    main()
