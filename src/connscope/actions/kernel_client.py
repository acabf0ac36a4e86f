"""
REST client for the proxy kernel's external controller.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..config import ControllerConfig
from ..errors import ActionError

_log = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


class KernelClient:
    def __init__(self, cfg: ControllerConfig, session: Optional[requests.Session] = None):
        self.base = cfg.controller_url.rstrip("/")
        self.timeout = cfg.timeout
        self.s = session or requests.Session()
        self.s.headers.update(JSON_HEADERS)
        if cfg.secret:
            self.s.headers.update({"Authorization": f"Bearer {cfg.secret}"})

    def _url(self, path: str) -> str:
        return f"{self.base}{path}"

    def _request(self, method: str, path: str, json_body: Optional[Dict] = None) -> requests.Response:
        url = self._url(path)
        try:
            resp = self.s.request(method, url, json=json_body, timeout=self.timeout)
        except requests.RequestException as e:
            raise ActionError(f"{method} {path} failed", cause=e) from e
        if not (200 <= resp.status_code < 300):
            err = requests.HTTPError(f"{method} {url} => {resp.status_code} {resp.text}", response=resp)
            raise ActionError(f"{method} {path} rejected", cause=err) from err
        return resp

    # --- Connections ---

    def get_connections(self) -> Any:
        """One snapshot batch: the controller envelope as decoded JSON."""
        r = self._request("GET", "/connections")
        try:
            return r.json()
        except ValueError as e:
            raise ActionError("GET /connections returned invalid JSON", cause=e) from e

    def terminate_connection(self, identity: str) -> None:
        self._request("DELETE", f"/connections/{quote(identity, safe='')}")
        _log.info("terminated connection %s", identity)

    def terminate_all(self) -> None:
        self._request("DELETE", "/connections")

    # --- Rule providers ---

    def list_rule_providers(self) -> Dict[str, Any]:
        r = self._request("GET", "/providers/rules")
        try:
            body = r.json()
        except ValueError as e:
            raise ActionError("GET /providers/rules returned invalid JSON", cause=e) from e
        providers = body.get("providers") if isinstance(body, dict) else None
        return providers if isinstance(providers, dict) else {}

    def refresh_rule_provider(self, name: str) -> None:
        self._request("PUT", f"/providers/rules/{quote(name, safe='')}")
        _log.info("refreshed rule provider %s", name)

    def close(self) -> None:
        self.s.close()
