from __future__ import annotations

# Snapshot extraction.
#
# The GraphQL response is untrusted input. We only need three fields from the
# "product_content" component:
#   data.pdpGetLayout.components[name == "product_content"].data[0]
#     .name          -> str
#     .price.value   -> int (rupiah)
#     .stock.value   -> str holding an int (the API double-encodes it)
#
# Anything else is a ShapeMismatch: the integration needs updating, which is a
# different problem from Tokopedia reporting an error (RemoteError).

import re
from dataclasses import dataclass
from typing import Any

from .errors import RemoteError, ShapeMismatch

PRODUCT_CONTENT = "product_content"

_INT_STRING = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ProductSnapshot:
    name: str
    price: int
    stock: int


def extract_snapshot(document: Any) -> ProductSnapshot:
    """Validate a PDPGetLayoutQuery response and project it to a snapshot."""
    if not isinstance(document, dict):
        raise ShapeMismatch(f"Expected a JSON object, got {type(document).__name__}")

    _raise_remote_error(document)
    data = _find_product_content(document)

    name = data.get("name")
    if not isinstance(name, str):
        raise ShapeMismatch("Unable to decode product name")

    price = _get_path(data, "price", "value")
    if not isinstance(price, int) or isinstance(price, bool):
        raise ShapeMismatch("Unable to decode product price")

    raw_stock = _get_path(data, "stock", "value")
    if not isinstance(raw_stock, str) or not _INT_STRING.fullmatch(raw_stock):
        raise ShapeMismatch(f"Unable to decode product stock ({raw_stock!r})")

    return ProductSnapshot(name=name, price=price, stock=int(raw_stock))


def _raise_remote_error(document: dict[str, Any]) -> None:
    errors = document.get("errors")
    if errors is None:
        return
    if not isinstance(errors, list) or not errors:
        raise ShapeMismatch("Response carries an error list without any error in it")

    first = errors[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, str):
        raise ShapeMismatch("Response carries an error without a message")
    raise RemoteError(f"Unable to fetch product data - {message}")


def _find_product_content(document: dict[str, Any]) -> dict[str, Any]:
    components = _get_path(document, "data", "pdpGetLayout", "components")
    if not isinstance(components, list):
        raise ShapeMismatch(
            "Unable to fetch product content detail - it seems like Tokopedia changed their API!"
        )

    for component in components:
        if isinstance(component, dict) and component.get("name") == PRODUCT_CONTENT:
            items = component.get("data")
            if isinstance(items, list) and items and isinstance(items[0], dict):
                return items[0]
            break

    raise ShapeMismatch(
        "Unable to fetch product content detail - it seems like Tokopedia changed their API!"
    )


def _get_path(obj: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj
