"""Shopping cart module."""
from .merge import MergePolicy, get_merge_policy, merge_carts
from .models import CartLine, calculate_total
from .service import CartEngine
from .storage import CartStorage

__all__ = [
    "CartEngine",
    "CartLine",
    "CartStorage",
    "MergePolicy",
    "calculate_total",
    "get_merge_policy",
    "merge_carts",
]
