"""
Client-side access to stored financial data.
"""

from fintrak.client.repository import (
    FallbackRepository,
    FinancialDataRepository,
    LocalRepository,
    RemoteRepository,
    RepositoryError,
    RepositoryUnavailableError,
    build_repository,
)
from fintrak.client.saver import DebouncedSaver

__all__ = [
    "FallbackRepository",
    "FinancialDataRepository",
    "LocalRepository",
    "RemoteRepository",
    "RepositoryError",
    "RepositoryUnavailableError",
    "build_repository",
    "DebouncedSaver",
]
