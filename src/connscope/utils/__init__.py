"""
Formatting helpers.
"""

from .format import format_bytes, format_rate, format_duration

__all__ = [
    'format_bytes',
    'format_rate',
    'format_duration',
]
