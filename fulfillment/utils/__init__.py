"""Utilities package."""

from fulfillment.utils.helpers import (
    generate_order_id,
    mask_reference,
    utc_now,
)
from fulfillment.utils.logger import setup_logging
from fulfillment.utils.money import as_float, quantize, to_minor_units

__all__ = [
    "setup_logging",
    "generate_order_id",
    "mask_reference",
    "utc_now",
    "as_float",
    "quantize",
    "to_minor_units",
]
