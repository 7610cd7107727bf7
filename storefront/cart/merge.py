"""Guest-cart merge policies."""
import os
from enum import Enum
from typing import Iterable

from storefront.logging import get_logger

from .models import CartLine

logger = get_logger(__name__)

CART_MERGE_POLICY = os.environ.get("CART_MERGE_POLICY", "authoritative")


class MergePolicy(str, Enum):
    """How to combine an authenticated cart with a guest cart on sign-in.

    AUTHORITATIVE: lines already in the account cart win unchanged; guest
        lines for other artworks are appended.
    SUM: like AUTHORITATIVE, but quantities of shared artworks are added.
    """
    AUTHORITATIVE = "authoritative"
    SUM = "sum"


def get_merge_policy(value: str | None = None) -> MergePolicy:
    raw = (value if value is not None else CART_MERGE_POLICY).strip().lower()
    try:
        return MergePolicy(raw)
    except ValueError:
        logger.warning("Unknown CART_MERGE_POLICY %r, using authoritative", raw)
        return MergePolicy.AUTHORITATIVE


def dedupe_lines(lines: Iterable[CartLine]) -> list[CartLine]:
    """Keep the first line per artwork id, preserving order."""
    seen: set[str] = set()
    result: list[CartLine] = []
    for line in lines:
        if line.artwork_id in seen:
            continue
        seen.add(line.artwork_id)
        result.append(line)
    return result


def merge_carts(
    authenticated: Iterable[CartLine],
    guest: Iterable[CartLine],
    policy: MergePolicy = MergePolicy.AUTHORITATIVE,
) -> list[CartLine]:
    """
    Merge a guest cart into the authenticated cart.

    Pure and idempotent: merging the result with the same guest cart again
    under AUTHORITATIVE yields the same lines. Order is authenticated lines
    first, then new guest lines in guest order.
    """
    merged = dedupe_lines(authenticated)
    positions = {line.artwork_id: index for index, line in enumerate(merged)}

    for line in dedupe_lines(guest):
        index = positions.get(line.artwork_id)
        if index is None:
            positions[line.artwork_id] = len(merged)
            merged.append(line)
        elif policy == MergePolicy.SUM:
            existing = merged[index]
            merged[index] = existing.with_quantity(existing.quantity + line.quantity)

    return merged
