"""
Utils package
"""

from .dates import add_month, add_months_clamped, clamp_day, format_month, parse_month
from .amounts import signed_amount

__all__ = [
    "add_month",
    "add_months_clamped",
    "clamp_day",
    "format_month",
    "parse_month",
    "signed_amount",
]
