"""
Rule-set store backed by classical-behavior text files.

Each rule set is ``<dir>/<name>.list`` with one rule expression per line.
The kernel loads these as file rule providers; a provider refresh makes
it pick up new lines.
"""
import logging
import os
import re
import threading
from typing import List

from ..errors import ActionError

_log = logging.getLogger(__name__)

_VALID_NAME = re.compile(r"^[A-Za-z0-9._-]+$")


class RuleSetFileStore:

    def __init__(self, directory: str):
        self.directory = directory
        self._lock = threading.Lock()

    def path_for(self, name: str) -> str:
        if not _VALID_NAME.match(name) or name in (".", ".."):
            raise ActionError(f"invalid rule set name: {name!r}")
        return os.path.join(self.directory, f"{name}.list")

    def read_rules(self, name: str) -> List[str]:
        path = self.path_for(name)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                lines = [line.strip() for line in f]
        except OSError as e:
            raise ActionError(f"failed to read rule set {name}", cause=e) from e
        return [line for line in lines if line and not line.startswith("#")]

    def submit(self, name: str, expression: str) -> bool:
        """
        Append a rule expression to a rule set.

        Returns False when the expression was already present.
        """
        path = self.path_for(name)
        with self._lock:
            if expression in self.read_rules(name):
                _log.debug("rule %r already in %s", expression, name)
                return False
            try:
                os.makedirs(self.directory, exist_ok=True)
                needs_newline = os.path.exists(path) and _ends_without_newline(path)
                with open(path, "a", encoding="utf-8") as f:
                    if needs_newline:
                        f.write("\n")
                    f.write(expression + "\n")
            except OSError as e:
                raise ActionError(f"failed to write rule set {name}", cause=e) from e
        _log.info("added %r to rule set %s", expression, name)
        return True


def _ends_without_newline(path: str) -> bool:
    with open(path, "rb") as f:
        f.seek(0, os.SEEK_END)
        if f.tell() == 0:
            return False
        f.seek(-1, os.SEEK_END)
        return f.read(1) != b"\n"
