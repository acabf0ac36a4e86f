"""
connscope - live connection telemetry for proxy kernels.
"""

from .session import TelemetrySession, SessionTotals

__version__ = "0.1.0"

__all__ = [
    'TelemetrySession',
    'SessionTotals',
]
