import pytest

from ha_tkpd.identity import DeviceIdentity, ProductLocator
from ha_tkpd.snapshot import ProductSnapshot


class RecordingSession:
    """Stands in for MqttSession; keeps the broker's view of retained topics."""

    def __init__(self):
        self.calls = []
        self.retained = {}

    def publish(self, topic, payload, *, retain):
        self.calls.append((topic, payload, retain))
        if retain:
            if payload == "":
                self.retained.pop(topic, None)
            else:
                self.retained[topic] = payload

    def close(self):
        self.calls.append(("<close>", None, None))


@pytest.fixture
def session():
    return RecordingSession()


@pytest.fixture
def identity():
    return DeviceIdentity(hash="a1b2c3d4")


@pytest.fixture
def locator():
    return ProductLocator(shop_domain="acme-store", product_key="widget-123")


@pytest.fixture
def snapshot():
    return ProductSnapshot(name="Widget", price=15000, stock=42)
