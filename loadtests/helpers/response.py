"""Reading storefront API responses in load tests.

The API answers with one of two error bodies:

- FastAPI request validation (422): ``{"detail": [{"loc": [...], "msg": "..."}]}``
- Storefront errors (400/404/409/503): ``{"error": {"field": ["message", ...]}}``,
  plus ``"outcome": "unknown"`` when a checkout timed out.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

_MAX_DETAIL = 300


class CheckoutOutcome(Enum):
    PLACED = "placed"
    OUT_OF_STOCK = "out_of_stock"
    UNKNOWN = "unknown"  # timed out; the order may or may not exist
    FAILED = "failed"


def _body(response: Response) -> dict | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def error_detail(response: Response) -> str:
    """One line describing why a request failed, for Locust failure messages."""
    body = _body(response)
    if body is None:
        return (getattr(response, "text", "") or "(empty response body)")[:_MAX_DETAIL]

    if isinstance(body.get("detail"), list):
        return " | ".join(
            f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg', err)}" for err in body["detail"]
        )

    error = body.get("error")
    if isinstance(error, dict):
        return " | ".join(
            f"{field}: {'; '.join(messages) if isinstance(messages, list) else messages}"
            for field, messages in error.items()
        )
    return str(error if error is not None else body)[:_MAX_DETAIL]


def checkout_outcome(response: Response) -> CheckoutOutcome:
    if response.status_code == 201:
        return CheckoutOutcome.PLACED
    if response.status_code == 409:
        return CheckoutOutcome.OUT_OF_STOCK
    if response.status_code == 503 and (_body(response) or {}).get("outcome") == "unknown":
        return CheckoutOutcome.UNKNOWN
    return CheckoutOutcome.FAILED
