from ha_tkpd.mqtt_topics import discovery_config, state


def test_topic_helpers():
    assert discovery_config("a1b2c3d4", "price") == "homeassistant/sensor/tkpd-a1b2c3d4/price/config"
    assert discovery_config("a1b2c3d4", "updated-at", "ha") == "ha/sensor/tkpd-a1b2c3d4/updated-at/config"
    assert state("a1b2c3d4", "price") == "tkpdprice/a1b2c3d4/price"
