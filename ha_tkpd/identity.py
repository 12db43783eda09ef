"""Product locator + device identity.

A Tokopedia product URL looks like `https://www.tokopedia.com/<shop>/<product>`.
The two path segments are the locator. The device identity is a 4-byte
BLAKE2s digest of `shop + product` rendered as 8 lowercase hex characters.

The hash must stay byte-for-byte stable: Home Assistant devices published by
earlier runs are addressed by it, so changing the algorithm, the digest size,
the input order or adding a separator orphans every existing device.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

from .errors import InputError

SUPPORTED_HOSTS = ("tokopedia.com", "www.tokopedia.com")
DIGEST_SIZE = 4

# Printable ASCII left alone in a path segment by a WHATWG URL parser.
# Everything else (controls, space, " < > ` { }, non-ASCII) is percent-encoded.
_PATH_SAFE = "!$%&'()*+,-./:;=@[\\]^_|~"
_TAB_OR_NEWLINE = re.compile(r"[\t\n\r]")


@dataclass(frozen=True)
class ProductLocator:
    shop_domain: str
    product_key: str

    @property
    def url(self) -> str:
        """Canonical product page URL."""
        return f"https://www.tokopedia.com/{self.shop_domain}/{self.product_key}"

    @property
    def serial_number(self) -> str:
        return f"{self.shop_domain}/{self.product_key}"


@dataclass(frozen=True)
class DeviceIdentity:
    hash: str

    @property
    def device_id(self) -> str:
        return f"tkpdprice-{self.hash}"

    def __str__(self) -> str:
        return self.hash


def parse_product_url(url: str) -> ProductLocator:
    """Split a product URL into its (shop, product) locator.

    Query string and fragment are ignored, a single trailing slash is allowed.
    Segments are never percent-decoded. Characters a browser would escape are
    escaped the same way, so the locator matches the path a browser (or any
    WHATWG URL parser) reports for the URL.
    """
    parts = urlsplit(_TAB_OR_NEWLINE.sub("", url.strip()))
    if not parts.scheme or not parts.netloc:
        raise InputError(f"Unable to parse URL {url!r}")

    host = (parts.hostname or "").lower()
    if host not in SUPPORTED_HOSTS:
        raise InputError(
            f"Wrong URL - this tool only supports tokopedia.com URLs (got host {host!r})"
        )

    path = parts.path
    if path.endswith("/"):
        path = path[:-1]
    segments = [quote(s, safe=_PATH_SAFE) for s in path.split("/")[1:]] if path else []

    if not segments or not segments[0]:
        raise InputError("Wrong URL format - shop domain is empty. Did you paste a base URL?")
    if len(segments) < 2 or not segments[1]:
        raise InputError("Wrong URL format - product key is empty. Did you copy a product URL?")
    if len(segments) > 2:
        raise InputError(
            f"Wrong URL format - expected /<shop>/<product>, got {parts.path!r}"
        )

    return ProductLocator(shop_domain=segments[0], product_key=segments[1])


def derive_identity(shop_domain: str, product_key: str) -> DeviceIdentity:
    h = hashlib.blake2s(digest_size=DIGEST_SIZE)
    h.update(shop_domain.encode("utf-8"))
    h.update(product_key.encode("utf-8"))
    return DeviceIdentity(hash=h.hexdigest())


def identity_for(locator: ProductLocator) -> DeviceIdentity:
    return derive_identity(locator.shop_domain, locator.product_key)
