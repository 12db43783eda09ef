"""MQTT topic helpers.

We keep topic construction in one place so the create and delete paths agree
on naming.

Topic layout for a product whose device hash is `<hash>`:

Home Assistant discovery (under a configurable prefix, default `homeassistant`):
- `<prefix>/sensor/tkpd-<hash>/<entity>/config`

State (fixed root, not affected by the discovery prefix):
- `tkpdprice/<hash>/<entity>`

`<entity>` is one of `name`, `price`, `stock`, `updated-at`, `scraper-version`.
"""

from __future__ import annotations

DEFAULT_DISCOVERY_PREFIX = "homeassistant"
STATE_ROOT = "tkpdprice"


def discovery_config(device_hash: str, entity: str, prefix: str = DEFAULT_DISCOVERY_PREFIX) -> str:
    return f"{prefix}/sensor/tkpd-{device_hash}/{entity}/config"


def state(device_hash: str, entity: str) -> str:
    """Retained state topic the sensor's `state_topic` points at."""
    return f"{STATE_ROOT}/{device_hash}/{entity}"
