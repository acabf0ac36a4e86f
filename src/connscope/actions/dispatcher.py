"""
User-triggered mutations on ledger entries.

Every action returns an ActionResult instead of raising, so the UI can
report each outcome. Failures never leave the ledger half-changed: a
failed close keeps the entry live, and rule submission never touches the
ledger at all.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from ..errors import ActionError
from ..telemetry.ledger import ConnectionLedger
from .rules import derive_rule

_log = logging.getLogger(__name__)

Terminate = Callable[[str], Any]
SubmitRule = Callable[[str, str], Any]
RefreshProvider = Callable[[str], Any]


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    identity: Optional[str] = None
    error: Optional[ActionError] = None
    warnings: Tuple[ActionError, ...] = field(default_factory=tuple)
    detail: str = ""
    """Action-specific payload, e.g. the submitted rule expression"""


def _call(action: str, fn: Callable[..., Any], *args: Any, identity: Optional[str] = None) -> Any:
    try:
        return fn(*args)
    except ActionError as e:
        if e.identity is None:
            e.identity = identity
        raise
    except Exception as e:
        raise ActionError(f"{action} failed", cause=e, identity=identity) from e


class ActionDispatcher:

    def __init__(self,
                 ledger: ConnectionLedger,
                 terminate: Terminate,
                 submit_rule: SubmitRule,
                 refresh_provider: RefreshProvider,
                 max_workers: int = 8):
        self.ledger = ledger
        self._terminate = terminate
        self._submit_rule = submit_rule
        self._refresh_provider = refresh_provider
        self.max_workers = max_workers

    def close_one(self, identity: str) -> ActionResult:
        """Terminate one live connection; remove it from the ledger only on success."""
        if not self.ledger.is_live(identity):
            error = ActionError(f"connection {identity} is not live", identity=identity)
            return ActionResult(ok=False, identity=identity, error=error)
        try:
            _call("terminate", self._terminate, identity, identity=identity)
        except ActionError as e:
            _log.warning("failed to close connection %s: %s", identity, e)
            return ActionResult(ok=False, identity=identity, error=e)
        self.ledger.remove(identity)
        return ActionResult(ok=True, identity=identity)

    def close_all(self) -> Dict[str, ActionResult]:
        """
        Terminate every live connection concurrently.

        Best effort: one failure does not stop the others. The ledger is
        left alone; closures show up through the next batch.
        """
        identities = self.ledger.live_identities()
        if not identities:
            return {}

        def terminate(identity: str) -> ActionResult:
            try:
                _call("terminate", self._terminate, identity, identity=identity)
            except ActionError as e:
                _log.warning("failed to close connection %s: %s", identity, e)
                return ActionResult(ok=False, identity=identity, error=e)
            return ActionResult(ok=True, identity=identity)

        workers = min(self.max_workers, len(identities))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="close-all") as pool:
            results = list(pool.map(terminate, identities))
        return {result.identity: result for result in results}

    def add_to_rule_set(self, identity: str, rule_set: str) -> ActionResult:
        """
        Promote a connection's host (or destination IP) into a rule set.

        The rule write stands even if the provider refresh afterwards
        fails; the refresh failure comes back as a warning.
        """
        entry = self.ledger.get(identity)
        if entry is None:
            error = ActionError(f"unknown connection {identity}", identity=identity)
            return ActionResult(ok=False, identity=identity, error=error)

        try:
            expression = derive_rule(entry.metadata)
            _call("rule submit", self._submit_rule, rule_set, expression, identity=identity)
        except ActionError as e:
            e.identity = identity
            _log.warning("failed to add %s to rule set %s: %s", identity, rule_set, e)
            return ActionResult(ok=False, identity=identity, error=e)

        warnings = []
        try:
            _call("provider refresh", self._refresh_provider, rule_set, identity=identity)
        except ActionError as e:
            _log.warning("rule set %s updated but refresh failed: %s", rule_set, e)
            warnings.append(e)

        return ActionResult(ok=True, identity=identity, warnings=tuple(warnings), detail=expression)
