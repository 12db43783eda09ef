import re

import pytest

from ha_tkpd.errors import InputError
from ha_tkpd.identity import derive_identity, identity_for, parse_product_url


def test_parse_product_url():
    loc = parse_product_url("https://www.tokopedia.com/acme-store/widget-123?extParam=ivf%3Dfalse")
    assert loc.shop_domain == "acme-store"
    assert loc.product_key == "widget-123"
    assert loc.url == "https://www.tokopedia.com/acme-store/widget-123"
    assert loc.serial_number == "acme-store/widget-123"


def test_parse_product_url_accepts_bare_host_and_trailing_slash():
    loc = parse_product_url("https://tokopedia.com/acme-store/widget-123/")
    assert (loc.shop_domain, loc.product_key) == ("acme-store", "widget-123")


@pytest.mark.parametrize(
    "url",
    [
        "not a url",
        "https://www.shopee.co.id/acme-store/widget-123",
        "https://www.tokopedia.com",
        "https://www.tokopedia.com/",
        "https://www.tokopedia.com/acme-store",
        "https://www.tokopedia.com/acme-store/",
        "https://www.tokopedia.com//widget-123",
        "https://www.tokopedia.com/acme-store/widget-123/review",
    ],
)
def test_parse_product_url_rejects_bad_input(url):
    with pytest.raises(InputError):
        parse_product_url(url)


def test_derive_identity_known_vector():
    # BLAKE2s with a 4-byte digest (digest length in the parameter block, not a
    # truncated 32-byte digest) over b"acme-storewidget-123".
    ident = derive_identity("acme-store", "widget-123")
    expected = "59cec6a9"
    assert ident.hash == expected
    assert re.fullmatch(r"[0-9a-f]{8}", ident.hash)
    assert ident.device_id == f"tkpdprice-{expected}"


def test_derive_identity_is_deterministic():
    a = derive_identity("acme-store", "widget-123")
    b = derive_identity("acme-store", "widget-123")
    assert a == b
    assert identity_for(parse_product_url("https://www.tokopedia.com/acme-store/widget-123")) == a


def test_derive_identity_distinct_locators_differ():
    corpus = [
        ("acme-store", "widget-123"),
        ("acme-store", "widget-124"),
        ("widget-123", "acme-store"),
        ("other-shop", "widget-123"),
        ("tokoku", "kabel-usb-c-1m"),
    ]
    hashes = {derive_identity(shop, product).hash for shop, product in corpus}
    assert len(hashes) == len(corpus)


def test_derive_identity_has_no_separator():
    assert derive_identity("acme-store", "widget-123") == derive_identity("acme-storewidget", "-123")
    assert derive_identity("acme-store", "widget-123") != derive_identity("widget-123", "acme-store")


def test_parse_product_url_escapes_non_ascii_like_a_browser():
    loc = parse_product_url("https://www.tokopedia.com/tokö/item")
    assert loc.shop_domain == "tok%C3%B6"
    assert loc.product_key == "item"
    assert identity_for(loc) == derive_identity("tok%C3%B6", "item")


def test_parse_product_url_escapes_spaces_and_keeps_existing_escapes():
    loc = parse_product_url("https://www.tokopedia.com/acme store/widget%20123")
    assert loc.shop_domain == "acme%20store"
    assert loc.product_key == "widget%20123"


def test_parse_product_url_drops_tabs_and_newlines():
    loc = parse_product_url("https://www.tokopedia.com/acme-\nstore/widget-123\t")
    assert (loc.shop_domain, loc.product_key) == ("acme-store", "widget-123")
