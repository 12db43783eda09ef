from __future__ import annotations

# Single-entrypoint runner.
#
#     python -m ha_tkpd.app https://www.tokopedia.com/<shop>/<product> [-s HOST] [-u USER -p PASS]
#     python -m ha_tkpd.app <url> --delete
#
# One invocation is one run: derive the device hash, then either
# - create/update: fetch the product, publish discovery configs + states, or
# - delete: clear every retained topic a create run could have written.
#
# This is the only place that catches `TrackerError`. Everything below raises.

import argparse
import logging
import sys

from . import __version__
from .config import BrokerSettings, env_defaults, resolve_credentials, setup_logging
from .discovery import publish_create, publish_delete
from .errors import TrackerError
from .identity import identity_for, parse_product_url
from .mqtt_client import open_session
from .snapshot import extract_snapshot
from .tokopedia import fetch_product_layout

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = env_defaults()
    parser = argparse.ArgumentParser(
        prog="ha-tkpd",
        description="Tracks Tokopedia item prices via Home Assistant (MQTT discovery)",
    )
    parser.add_argument("url", help="the Tokopedia URL of the product to track")
    parser.add_argument("-u", "--username", default=defaults["username"], help="MQTT broker username if required")
    parser.add_argument("-p", "--password", default=defaults["password"], help="MQTT broker password if required")
    parser.add_argument("-s", "--server", default=defaults["server"], help="MQTT broker host or IP")
    parser.add_argument("-x", "--port", type=int, default=defaults["port"], help="MQTT broker port")
    parser.add_argument(
        "-t",
        "--topic",
        default=defaults["topic"],
        help="Home Assistant MQTT discovery prefix",
    )
    parser.add_argument(
        "-d",
        "--delete",
        action="store_true",
        help="remove the product's device from Home Assistant instead of updating it",
    )
    parser.add_argument("--log-level", default=defaults["log_level"], help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run(args: argparse.Namespace) -> None:
    # Input errors first: nothing touches the network before these pass.
    credentials = resolve_credentials(args.username, args.password)
    locator = parse_product_url(args.url)
    logger.info("Shop: %s", locator.shop_domain)
    logger.info("Product key: %s", locator.product_key)

    identity = identity_for(locator)
    logger.info("Hash: %s", identity.hash)

    settings = BrokerSettings(host=args.server, port=args.port, credentials=credentials)

    if args.delete:
        session = open_session(settings)
        publish_delete(session, identity, args.topic)
    else:
        document = fetch_product_layout(locator)
        snapshot = extract_snapshot(document)
        logger.info("Product name: %s", snapshot.name)
        logger.info("Price: Rp. %d", snapshot.price)
        logger.info("Stock: %d", snapshot.stock)

        session = open_session(settings)
        publish_create(session, identity, locator, snapshot, args.topic)

    session.close()
    logger.info("Everything looks successful. Exiting...")


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        run(args)
    except TrackerError as e:
        logger.error("Aborting (%s error): %s", e.code, e)
        sys.exit(1)


if __name__ == "__main__":
    main()
