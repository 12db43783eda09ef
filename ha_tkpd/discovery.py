from __future__ import annotations

# Home Assistant discovery + state publishing.
#
# A tracked product shows up in Home Assistant as one device with five sensors.
# Each sensor needs two retained messages:
#   - a discovery config (JSON) under the discovery prefix
#   - a state value under tkpdprice/<hash>/<entity>
#
# Create and delete both iterate the same `DiscoveryEntity` enum, so a delete
# run always erases exactly the topics a create run could have written.
#
# Two layers, like the rest of the package:
# 1) `build_*_messages()` (pure, returns (topic, payload) pairs)
# 2) `publish_*()` (hands those pairs to an MQTT session, in order)

import enum
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from . import PROJECT_NAME, SUPPORT_URL, __version__
from .identity import DeviceIdentity, ProductLocator
from .mqtt_topics import DEFAULT_DISCOVERY_PREFIX, discovery_config, state
from .snapshot import ProductSnapshot

logger = logging.getLogger(__name__)

Message = tuple[str, str]


class Publisher(Protocol):
    def publish(self, topic: str, payload: str, *, retain: bool) -> None: ...


@dataclass(frozen=True)
class EntitySpec:
    """Static Home Assistant metadata for one sensor."""

    display_name: str | None
    device_class: str | None = None
    unit_of_measurement: str | None = None
    state_class: str | None = None
    suggested_display_precision: int | None = None
    entity_category: str | None = None
    icon: str | None = None


class DiscoveryEntity(enum.Enum):
    """The closed set of sensors a tracked product exposes."""

    NAME = "name"
    PRICE = "price"
    STOCK = "stock"
    UPDATED_AT = "updated-at"
    SCRAPER_VERSION = "scraper-version"

    @property
    def spec(self) -> EntitySpec:
        return _ENTITY_SPECS[self]


_ENTITY_SPECS: dict[DiscoveryEntity, EntitySpec] = {
    # No own name: Home Assistant then shows the device (product) name.
    DiscoveryEntity.NAME: EntitySpec(display_name=None, icon="mdi:tag-text"),
    DiscoveryEntity.PRICE: EntitySpec(
        display_name="Price",
        device_class="monetary",
        unit_of_measurement="IDR",
        suggested_display_precision=0,
    ),
    DiscoveryEntity.STOCK: EntitySpec(
        display_name="Stock",
        unit_of_measurement="pcs",
        state_class="measurement",
        suggested_display_precision=0,
        icon="mdi:package-variant",
    ),
    DiscoveryEntity.UPDATED_AT: EntitySpec(
        display_name="Last updated",
        device_class="timestamp",
        entity_category="diagnostic",
    ),
    DiscoveryEntity.SCRAPER_VERSION: EntitySpec(
        display_name="Scraper version",
        entity_category="diagnostic",
        icon="mdi:information-outline",
    ),
}


@dataclass(frozen=True)
class DeviceDescriptor:
    """The `device` block shared by every discovery config of one product."""

    name: str
    identifiers: tuple[str, ...] = ()
    serial_number: str = ""
    configuration_url: str = ""
    sw_version: str = __version__
    manufacturer: str = "Tokopedia"
    model: str = ""

    @classmethod
    def for_product(
        cls,
        identity: DeviceIdentity,
        locator: ProductLocator,
        snapshot: ProductSnapshot,
        *,
        version: str = __version__,
    ) -> "DeviceDescriptor":
        return cls(
            name=snapshot.name,
            identifiers=(identity.device_id,),
            serial_number=locator.serial_number,
            configuration_url=locator.url,
            sw_version=version,
            model=locator.shop_domain,
        )

    def to_message(self) -> dict[str, Any]:
        return asdict(self)


def unique_id(identity: DeviceIdentity, entity: DiscoveryEntity) -> str:
    return f"{identity.device_id}-{entity.value}"


def discovery_payload(
    identity: DeviceIdentity,
    entity: DiscoveryEntity,
    device: DeviceDescriptor,
    *,
    version: str = __version__,
) -> dict[str, Any]:
    """Build the JSON config Home Assistant uses to register one sensor."""
    spec = entity.spec
    uid = unique_id(identity, entity)
    msg: dict[str, Any] = {
        "origin": {"name": PROJECT_NAME, "sw_version": version, "support_url": SUPPORT_URL},
        "device": device.to_message(),
        "platform": "sensor",
        "name": spec.display_name,
        "unique_id": uid,
        "object_id": uid,
        "state_topic": state(identity.hash, entity.value),
        "force_update": True,
        "qos": 1,
    }
    for key in (
        "device_class",
        "unit_of_measurement",
        "state_class",
        "suggested_display_precision",
        "entity_category",
        "icon",
    ):
        value = getattr(spec, key)
        if value is not None:
            msg[key] = value
    return msg


STATE_VALUES: dict[DiscoveryEntity, Callable[[ProductSnapshot, datetime, str], str]] = {
    DiscoveryEntity.NAME: lambda snapshot, updated_at, version: snapshot.name,
    DiscoveryEntity.PRICE: lambda snapshot, updated_at, version: str(snapshot.price),
    DiscoveryEntity.STOCK: lambda snapshot, updated_at, version: str(snapshot.stock),
    DiscoveryEntity.UPDATED_AT: lambda snapshot, updated_at, version: updated_at.isoformat(),
    DiscoveryEntity.SCRAPER_VERSION: lambda snapshot, updated_at, version: version,
}

if set(STATE_VALUES) != set(DiscoveryEntity) or set(_ENTITY_SPECS) != set(DiscoveryEntity):
    raise RuntimeError("every DiscoveryEntity needs sensor metadata and a state value")


def state_value(
    entity: DiscoveryEntity,
    snapshot: ProductSnapshot,
    *,
    updated_at: datetime,
    version: str,
) -> str:
    return STATE_VALUES[entity](snapshot, updated_at, version)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def build_create_messages(
    identity: DeviceIdentity,
    locator: ProductLocator,
    snapshot: ProductSnapshot,
    prefix: str = DEFAULT_DISCOVERY_PREFIX,
    *,
    updated_at: datetime | None = None,
    version: str = __version__,
) -> list[Message]:
    """All configs first (enum order), then all states (enum order)."""
    when = updated_at or utc_now()
    device = DeviceDescriptor.for_product(identity, locator, snapshot, version=version)

    messages: list[Message] = []
    for entity in DiscoveryEntity:
        payload = discovery_payload(identity, entity, device, version=version)
        messages.append(
            (
                discovery_config(identity.hash, entity.value, prefix),
                json.dumps(payload, separators=(",", ":")),
            )
        )
    for entity in DiscoveryEntity:
        messages.append(
            (
                state(identity.hash, entity.value),
                state_value(entity, snapshot, updated_at=when, version=version),
            )
        )
    return messages


def build_delete_messages(
    identity: DeviceIdentity, prefix: str = DEFAULT_DISCOVERY_PREFIX
) -> list[Message]:
    """Empty retained payloads for every topic `build_create_messages` uses."""
    messages: list[Message] = [
        (discovery_config(identity.hash, entity.value, prefix), "") for entity in DiscoveryEntity
    ]
    messages += [(state(identity.hash, entity.value), "") for entity in DiscoveryEntity]
    return messages


def publish_create(
    session: Publisher,
    identity: DeviceIdentity,
    locator: ProductLocator,
    snapshot: ProductSnapshot,
    prefix: str = DEFAULT_DISCOVERY_PREFIX,
    *,
    updated_at: datetime | None = None,
) -> None:
    messages = build_create_messages(identity, locator, snapshot, prefix, updated_at=updated_at)
    for topic, payload in messages:
        session.publish(topic, payload, retain=True)
    logger.info("Published %d discovery/state messages for device %s", len(messages), identity)


def publish_delete(
    session: Publisher, identity: DeviceIdentity, prefix: str = DEFAULT_DISCOVERY_PREFIX
) -> None:
    messages = build_delete_messages(identity, prefix)
    for topic, payload in messages:
        session.publish(topic, payload, retain=True)
    logger.info("Cleared %d retained messages for device %s", len(messages), identity)
