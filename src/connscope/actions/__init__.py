"""
Connection actions: terminate, close all, promote to rule set.
"""

from .dispatcher import ActionDispatcher, ActionResult
from .kernel_client import KernelClient
from .rule_store import RuleSetFileStore
from .rules import derive_rule

__all__ = [
    'ActionDispatcher',
    'ActionResult',
    'KernelClient',
    'RuleSetFileStore',
    'derive_rule',
]
