"""Track Tokopedia product prices on Home Assistant via MQTT.

One run of the tool:
- parses a Tokopedia product URL into a (shop, product) locator
- derives a short stable hash that names the Home Assistant device
- fetches name/price/stock from the Tokopedia GraphQL API
- publishes retained MQTT discovery configs + states for five sensors

With `--delete` the same topics are overwritten with empty retained payloads,
which removes the device from Home Assistant.
"""

__version__ = "0.1.0"

PROJECT_NAME = "ha-tkpd"
SUPPORT_URL = "https://github.com/angeloanan/ha-tkpd-tracker"
