"""Run configuration.

Command line flags win; each one falls back to an environment variable so the
tool can run from cron or a container without credentials on the command line.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from . import PROJECT_NAME, __version__
from .errors import InputError
from .mqtt_topics import DEFAULT_DISCOVERY_PREFIX

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULT_MQTT_SERVER = "localhost"
DEFAULT_MQTT_PORT = 1883
MQTT_KEEPALIVE_SECONDS = 10


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def env_defaults() -> dict[str, object]:
    """Defaults for the CLI, read from the environment at call time."""
    return {
        "username": _get_env("HA_TKPD_MQTT_USERNAME"),
        "password": _get_env("HA_TKPD_MQTT_PASSWORD"),
        "server": _get_env("HA_TKPD_MQTT_SERVER", DEFAULT_MQTT_SERVER),
        "port": _parse_int(_get_env("HA_TKPD_MQTT_PORT"), DEFAULT_MQTT_PORT),
        "topic": _get_env("HA_TKPD_DISCOVERY_PREFIX", DEFAULT_DISCOVERY_PREFIX),
        "log_level": _get_env("LOG_LEVEL", "INFO"),
    }


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str


@dataclass(frozen=True)
class BrokerSettings:
    host: str = DEFAULT_MQTT_SERVER
    port: int = DEFAULT_MQTT_PORT
    credentials: Optional[Credentials] = None
    keepalive: int = MQTT_KEEPALIVE_SECONDS
    client_id: str = f"{PROJECT_NAME}/{__version__}"


def resolve_credentials(username: Optional[str], password: Optional[str]) -> Optional[Credentials]:
    """Apply the broker credential rule.

    - neither given: anonymous
    - password without username: InputError
    - username without password: warn and use an empty password
    """
    if password is not None and username is None:
        raise InputError("MQTT broker password is provided without any username. Aborting...")
    if username is None:
        return None
    if password is None:
        logger.warning("MQTT broker username is provided without password. Continuing...")
        password = ""
    return Credentials(username=username, password=password)


def setup_logging(level_name: str = "INFO") -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
