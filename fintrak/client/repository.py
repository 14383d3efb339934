"""
Financial Data Repositories

One storage contract with two backends: the REST service and a JSON file
on the local machine. FallbackRepository prefers the service, mirrors every
good result into the local file, and serves the file whenever the service
cannot be reached or refuses the session.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from fintrak.services.financial_data import default_snapshot, normalize_snapshot

logger = logging.getLogger(__name__)

FINANCIAL_DATA_PATH = "/api/financial-data"


class RepositoryError(Exception):
    """Base exception for repository operations."""


class RepositoryUnavailableError(RepositoryError):
    """The backend could not be reached or rejected the request."""


class FinancialDataRepository(ABC):
    """Load, save and clear one user's financial document."""

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """
        Get the stored document.

        Returns:
            The document, or the empty default when nothing is stored
        """

    @abstractmethod
    def save(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the stored document.

        Returns:
            The document as stored
        """

    @abstractmethod
    def clear(self) -> Dict[str, Any]:
        """Reset the stored document to the empty default."""


class RemoteRepository(FinancialDataRepository):
    """Talks to the REST service with an httpx client."""

    def __init__(self, client: httpx.Client, access_token: Optional[str] = None):
        self.client = client
        self.access_token = access_token

    def _headers(self) -> Dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    def _request(self, method: str, json_body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self.client.request(
                method,
                FINANCIAL_DATA_PATH,
                json=json_body,
                headers=self._headers(),
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RepositoryUnavailableError(f"{method} {FINANCIAL_DATA_PATH} failed: {e}") from e

        if not isinstance(payload, dict):
            raise RepositoryUnavailableError(
                f"{method} {FINANCIAL_DATA_PATH} returned {type(payload).__name__}, expected an object"
            )
        return payload

    def load(self) -> Dict[str, Any]:
        return self._request("GET")

    def save(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", snapshot)

    def clear(self) -> Dict[str, Any]:
        return self._request("DELETE")


class LocalRepository(FinancialDataRepository):
    """Keeps the document in a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return default_snapshot()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache %s: %s", self.path, e)
            return default_snapshot()
        if not isinstance(data, dict):
            logger.warning("Ignoring cache %s: expected an object", self.path)
            return default_snapshot()
        return normalize_snapshot(data)

    def save(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        normalized = normalize_snapshot(snapshot)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(normalized, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
        return normalized

    def clear(self) -> Dict[str, Any]:
        return self.save(default_snapshot())


class FallbackRepository(FinancialDataRepository):
    """
    Remote first, local cache second.

    The cache is written before every remote save so an unreachable
    service never loses an edit.
    """

    def __init__(self, remote: FinancialDataRepository, local: FinancialDataRepository):
        self.remote = remote
        self.local = local
        self.remote_available = True

    def load(self) -> Dict[str, Any]:
        try:
            snapshot = self.remote.load()
        except RepositoryUnavailableError as e:
            self.remote_available = False
            logger.warning("Loading financial data from local cache: %s", e)
            return self.local.load()

        self.remote_available = True
        return self.local.save(snapshot)

    def save(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        cached = self.local.save(snapshot)
        try:
            stored = self.remote.save(cached)
        except RepositoryUnavailableError as e:
            self.remote_available = False
            logger.warning("Saved financial data to local cache only: %s", e)
            return cached

        self.remote_available = True
        return self.local.save(stored)

    def clear(self) -> Dict[str, Any]:
        cleared = self.local.clear()
        try:
            self.remote.clear()
        except RepositoryUnavailableError as e:
            self.remote_available = False
            logger.warning("Cleared local cache only: %s", e)
            return cleared

        self.remote_available = True
        return cleared


def build_repository(settings, access_token: Optional[str] = None) -> FallbackRepository:
    """Wire a fallback repository from application settings."""
    client = httpx.Client(base_url=settings.api_base_url, timeout=10.0)
    return FallbackRepository(
        remote=RemoteRepository(client, access_token=access_token),
        local=LocalRepository(Path(settings.local_cache_path)),
    )
