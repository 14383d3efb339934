"""
Debounced saving.

Edits arrive faster than they need to be stored. DebouncedSaver waits until
edits pause for `delay` seconds and then stores only the latest document.
"""

import copy
import logging
import threading
from typing import Any, Dict, Optional

from fintrak.client.repository import FinancialDataRepository

logger = logging.getLogger(__name__)


class DebouncedSaver:
    """Coalesce rapid saves so only the newest snapshot is written."""

    def __init__(self, repository: FinancialDataRepository, delay: float = 1.0):
        self.repository = repository
        self.delay = delay
        self._lock = threading.Lock()
        # Serializes writes; only the holder may call repository.save
        self._save_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Dict[str, Any]] = None
        self._sequence = 0
        self._saved_sequence = 0
        self.last_saved: Optional[Dict[str, Any]] = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, snapshot: Dict[str, Any]):
        """Queue a snapshot, replacing any not yet written, and restart the wait."""
        with self._lock:
            self._pending = copy.deepcopy(snapshot)
            self._sequence += 1
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> Optional[Dict[str, Any]]:
        """
        Write the pending snapshot now.

        Waits for any write already in progress. A snapshot older than the
        one last written is dropped rather than stored over it.

        Returns:
            The latest stored document, or None if nothing was pending
        """
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            snapshot, self._pending = self._pending, None
            sequence = self._sequence

        if snapshot is None:
            return None

        with self._save_lock:
            if sequence <= self._saved_sequence:
                logger.debug("Dropped stale snapshot %s", sequence)
                return self.last_saved
            self.last_saved = self.repository.save(snapshot)
            self._saved_sequence = sequence

        logger.debug("Flushed financial data snapshot %s", sequence)
        return self.last_saved

    def cancel(self):
        """Drop the pending snapshot without writing it."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None
