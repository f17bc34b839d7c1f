"""Remove expired routing state for managed components and modals.

Usage:
    python scripts/purge_routing_state.py

Expired rows are already ignored on read; this only reclaims space.
"""

from __future__ import annotations

from interaction_router.logging_config import configure_logging
from interaction_router.store import SqlCallbackStore


def purge() -> int:
    removed = SqlCallbackStore().purge_expired()
    print(f"Removed {removed} expired routing state entries.")
    return removed


if __name__ == "__main__":
    configure_logging()
    purge()
