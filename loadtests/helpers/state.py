"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class BuyerState:
    """Tracks a single simulated buyer, guest or registered."""

    guest_id: str | None = None
    user_id: str | None = None
    phone_number: str | None = None
    address_id: str | None = None
    order_ids: list[str] = field(default_factory=list)

    def owner(self) -> dict:
        return {"user_id": self.user_id} if self.user_id else {"guest_id": self.guest_id}


@dataclass
class RaceStats:
    """Outcome counts for the last-unit race."""

    placed: int = 0
    out_of_stock: int = 0
    unknown: int = 0
    failed: int = 0
