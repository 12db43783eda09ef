"""Tokopedia GraphQL client.

Only one request is needed: `PDPGetLayoutQuery`, the same query the product
page itself sends. Tokopedia sits behind Akamai, so the request mimics a
browser (user agent, referer and the `x-tkpd-akamai` header).

TLS certificate validation is turned off for this request. The endpoint is
public and read-only, and the tool only republishes what it reads.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
import urllib3

from .errors import FetchError
from .identity import ProductLocator

logger = logging.getLogger(__name__)

GQL_ENDPOINT = "https://gql.tokopedia.com/graphql/PDPGetLayoutQuery"
GQL_OPERATION_NAME = "PDPGetLayoutQuery"
AKAMAI_HEADER = "pdpGetLayout"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36"
)
REQUEST_TIMEOUT_SECONDS = 10.0

GQL_PDP_QUERY = """\
fragment ProductHighlight on pdpDataProductContent {
  name
  price {
    value
    currency
    priceFmt
    slashPriceFmt
    discPercentage
    __typename
  }
  campaign {
    campaignID
    campaignType
    campaignTypeName
    campaignIdentifier
    background
    percentageAmount
    originalPrice
    discountedPrice
    originalStock
    stock
    stockSoldPercentage
    threshold
    startDate
    endDate
    endDateUnix
    appLinks
    isAppsOnly
    isActive
    hideGimmick
    showStockBar
    __typename
  }
  thematicCampaign {
    additionalInfo
    background
    campaignName
    icon
    __typename
  }
  stock {
    useStock
    value
    stockWording
    __typename
  }
  variant {
    isVariant
    parentID
    __typename
  }
  wholesale {
    minQty
    price {
      value
      currency
      __typename
    }
    __typename
  }
  isCashback {
    percentage
    __typename
  }
  isTradeIn
  isOS
  isPowerMerchant
  isWishlist
  isCOD
  preorder {
    duration
    timeUnit
    isActive
    preorderInDays
    __typename
  }
  __typename
}

query PDPGetLayoutQuery($shopDomain: String, $productKey: String, $layoutID: String, $apiVersion: Float, $userLocation: pdpUserLocation, $extParam: String, $tokonow: pdpTokoNow, $deviceID: String) {
  pdpGetLayout(shopDomain: $shopDomain, productKey: $productKey, layoutID: $layoutID, apiVersion: $apiVersion, userLocation: $userLocation, extParam: $extParam, tokonow: $tokonow, deviceID: $deviceID) {
    name
    components {
      name
      type
      position
      data {
        ...ProductHighlight
        __typename
      }
      __typename
    }
    __typename
  }
}"""


def get_http_session() -> requests.Session:
    """Return a session that looks like a desktop browser to Tokopedia."""
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    session = requests.Session()
    session.verify = False
    session.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept": "*/*",
            "x-tkpd-akamai": AKAMAI_HEADER,
        }
    )
    return session


def build_query(locator: ProductLocator) -> dict[str, Any]:
    return {
        "query": GQL_PDP_QUERY,
        "operationName": GQL_OPERATION_NAME,
        "variables": {
            "shopDomain": locator.shop_domain,
            "productKey": locator.product_key,
            "apiVersion": 1,
        },
    }


def _raise_for_status(resp: requests.Response) -> None:
    try:
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"Unable to fetch product data - {e}") from e


def _post_layout(http: requests.Session, locator: ProductLocator, timeout: float) -> Any:
    logger.info("Sending Tokopedia API request")
    try:
        resp = http.post(
            GQL_ENDPOINT,
            json=build_query(locator),
            headers={"Referer": locator.url},
            timeout=timeout,
            verify=False,
        )
    except requests.RequestException as e:
        raise FetchError(f"Unable to fetch product data - {e}") from e

    logger.info("HTTP response received! (status %s)", resp.status_code)
    try:
        body = resp.json()
    except ValueError as e:
        _raise_for_status(resp)
        raise FetchError("Tokopedia returned a non-JSON response") from e
    logger.debug("Response body: %s", body)

    # GraphQL errors may come with a 4xx/5xx status; their message beats the status line.
    if not (isinstance(body, dict) and body.get("errors")):
        _raise_for_status(resp)
    return body


def fetch_product_layout(
    locator: ProductLocator,
    *,
    session: requests.Session | None = None,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> Any:
    """POST the product layout query and return the decoded JSON document.

    The document is returned as-is; `snapshot.extract_snapshot` validates it.
    An error status only fails here when the body carries no GraphQL `errors`.
    """
    if session is None:
        with get_http_session() as http:
            return _post_layout(http, locator, timeout)
    return _post_layout(session, locator, timeout)
