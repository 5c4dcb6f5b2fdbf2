"""Utility helper functions."""

import secrets
import time
from datetime import UTC, datetime


def generate_order_id() -> str:
    """Generate a human-readable order id: ORD-<time digits>-<random digits>."""
    millis = int(time.time() * 1000)
    return f"ORD-{millis % 1_000_000:06d}-{secrets.randbelow(10_000):04d}"


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def mask_reference(reference: str, visible: int = 4) -> str:
    """Hide all but the last few characters of a payment reference for logs."""
    if len(reference) <= visible:
        return "*" * len(reference)
    return "*" * (len(reference) - visible) + reference[-visible:]
