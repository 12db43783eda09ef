import pytest
import requests

from ha_tkpd import tokopedia
from ha_tkpd.errors import FetchError, RemoteError
from ha_tkpd.identity import ProductLocator
from ha_tkpd.snapshot import extract_snapshot
from ha_tkpd.tokopedia import (
    GQL_ENDPOINT,
    GQL_OPERATION_NAME,
    build_query,
    fetch_product_layout,
    get_http_session,
)

LOCATOR = ProductLocator(shop_domain="acme-store", product_key="widget-123")


class FakeResponse:
    def __init__(self, body=None, status_code=200, json_error=None):
        self.body = body
        self.status_code = status_code
        self.json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.json_error is not None:
            raise self.json_error
        return self.body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


def test_build_query():
    q = build_query(LOCATOR)
    assert q["operationName"] == GQL_OPERATION_NAME
    assert q["variables"] == {"shopDomain": "acme-store", "productKey": "widget-123", "apiVersion": 1}
    assert "query PDPGetLayoutQuery(" in q["query"]
    assert "...ProductHighlight" in q["query"]


def test_http_session_looks_like_a_browser():
    session = get_http_session()
    assert session.verify is False
    assert session.headers["User-Agent"].startswith("Mozilla/5.0")
    assert session.headers["x-tkpd-akamai"] == "pdpGetLayout"


def test_fetch_product_layout_posts_query():
    http = FakeSession(FakeResponse({"data": {}}))
    assert fetch_product_layout(LOCATOR, session=http) == {"data": {}}

    url, kwargs = http.calls[0]
    assert url == GQL_ENDPOINT
    assert kwargs["json"] == build_query(LOCATOR)
    assert kwargs["headers"]["Referer"] == "https://www.tokopedia.com/acme-store/widget-123"
    assert kwargs["verify"] is False
    assert kwargs["timeout"] == 10.0


def test_fetch_product_layout_network_error():
    http = FakeSession(error=requests.ConnectionError("down"))
    with pytest.raises(FetchError, match="down"):
        fetch_product_layout(LOCATOR, session=http)


def test_fetch_product_layout_http_error():
    http = FakeSession(FakeResponse(status_code=403))
    with pytest.raises(FetchError, match="403"):
        fetch_product_layout(LOCATOR, session=http)


def test_fetch_product_layout_non_json():
    http = FakeSession(FakeResponse(json_error=ValueError("Expecting value")))
    with pytest.raises(FetchError, match="non-JSON"):
        fetch_product_layout(LOCATOR, session=http)


def test_fetch_product_layout_error_status_keeps_remote_message():
    body = {"errors": [{"message": "product not found"}]}
    http = FakeSession(FakeResponse(body, status_code=400))

    document = fetch_product_layout(LOCATOR, session=http)

    assert document == body
    with pytest.raises(RemoteError, match="product not found"):
        extract_snapshot(document)


def test_fetch_product_layout_error_status_with_non_json_body():
    http = FakeSession(FakeResponse(status_code=502, json_error=ValueError("Expecting value")))
    with pytest.raises(FetchError, match="502"):
        fetch_product_layout(LOCATOR, session=http)


def test_fetch_product_layout_closes_its_own_session(monkeypatch):
    http = FakeSession(FakeResponse({"data": {}}))
    monkeypatch.setattr(tokopedia, "get_http_session", lambda: http)

    assert fetch_product_layout(LOCATOR) == {"data": {}}
    assert http.closed
    assert len(http.calls) == 1
