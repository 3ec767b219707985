"""Fixed award schedule and redemption terms."""

from __future__ import annotations

from decimal import Decimal
from typing import Final, Literal, get_args

InteractionKind = Literal["like", "dislike", "watch"]

INTERACTION_KINDS: Final[frozenset[str]] = frozenset(get_args(InteractionKind))

POINTS: Final[dict[str, int]] = {
    "watch": 5,
    "like": 5,
    "dislike": 5,
    "follow": 10,
}

REDEMPTION_THRESHOLD: Final[int] = 1000
REDEMPTION_AMOUNT: Final[Decimal] = Decimal("10")
REDEMPTION_STATUS_PENDING: Final[str] = "pending"

POINT_REQUEST_PENDING: Final[str] = "pending"
POINT_REQUEST_AWARDED: Final[str] = "awarded"
