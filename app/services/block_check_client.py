"""
Client for the third-party block status oracle.

The oracle answers GET requests carrying either ``domain=<name>`` or
``domains=<a,b,c>`` plus ``json=true`` with a mapping of
``{"example.com": {"blocked": true}}``.
"""
import logging
from typing import Dict, List, Optional

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)


class BlockCheckError(Exception):
    """The oracle could not be reached or returned an unusable response."""


def _is_blocked(result) -> bool:
    # Domains missing from the response count as not blocked
    if not isinstance(result, dict):
        return False
    return bool(result.get("blocked", False))


class BlockCheckClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = base_url or settings.ORACLE_URL
        self.timeout = timeout if timeout is not None else settings.ORACLE_TIMEOUT_SECONDS

    def _query(self, params: dict) -> dict:
        params = {**params, "json": "true"}
        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise BlockCheckError(f"Oracle timed out after {self.timeout}s: {str(e)}")
        except requests.exceptions.RequestException as e:
            raise BlockCheckError(f"Oracle request failed: {str(e)}")

        if response.status_code != 200:
            raise BlockCheckError(f"Oracle returned HTTP {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as e:
            raise BlockCheckError(f"Oracle returned invalid JSON: {str(e)}")

        if not isinstance(data, dict):
            raise BlockCheckError(f"Unexpected oracle payload type: {type(data).__name__}")
        return data

    def check_domain(self, domain: str) -> bool:
        data = self._query({"domain": domain})
        return _is_blocked(data.get(domain))

    def check_domains(self, domains: List[str]) -> Dict[str, bool]:
        """Resolve a batch in one request. Every requested domain gets an entry."""
        if not domains:
            return {}
        data = self._query({"domains": ",".join(domains)})
        return {domain: _is_blocked(data.get(domain)) for domain in domains}
