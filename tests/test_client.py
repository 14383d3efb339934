"""
Tests for the client-side repositories and debounced saver.
"""

import json
import threading
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from fintrak.main import app
from fintrak.config import Settings
from fintrak.client import (
    DebouncedSaver,
    FallbackRepository,
    FinancialDataRepository,
    LocalRepository,
    RemoteRepository,
    RepositoryUnavailableError,
    build_repository,
)
from fintrak.services.financial_data import default_snapshot


def _document(amount=50):
    snapshot = default_snapshot()
    snapshot["notes_10"] = 2
    snapshot["bank_account_rows"] = [{"id": "amp", "label": "AMP", "amount": amount}]
    return snapshot


def _unreachable_client():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api.test")


def _unauthorized_client():
    def handler(request):
        return httpx.Response(401, json={"detail": "Not authenticated"})

    return httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api.test")


def _proxy_page_client():
    def handler(request):
        return httpx.Response(200, text="<html>proxy login</html>")

    return httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api.test")


class SlowFirstSaveRepository(FinancialDataRepository):
    """The first save blocks for a while; later saves return at once."""

    def __init__(self, first_save_seconds=0.5):
        self.first_save_seconds = first_save_seconds
        self.calls = 0
        self.saved = []
        self.first_save_started = threading.Event()

    def load(self):
        return self.saved[-1] if self.saved else default_snapshot()

    def save(self, snapshot):
        self.calls += 1
        if self.calls == 1:
            self.first_save_started.set()
            time.sleep(self.first_save_seconds)
        self.saved.append(snapshot)
        return snapshot

    def clear(self):
        return default_snapshot()


class MemoryRepository(FinancialDataRepository):
    """Records every save."""

    def __init__(self):
        self.saved = []
        self.saved_event = threading.Event()

    def load(self):
        return self.saved[-1] if self.saved else default_snapshot()

    def save(self, snapshot):
        self.saved.append(snapshot)
        self.saved_event.set()
        return snapshot

    def clear(self):
        self.saved.append(default_snapshot())
        return self.saved[-1]


class TestRemoteRepository:
    """Test the REST-backed repository against the real app."""

    def test_save_and_load(self, access_token):
        remote = RemoteRepository(TestClient(app), access_token=access_token)

        stored = remote.save(_document())
        assert stored["bank_account_rows"][0]["amount"] == 50

        loaded = remote.load()
        assert loaded["notes_10"] == 2
        assert loaded["bank_account_rows"] == stored["bank_account_rows"]

    def test_clear(self, access_token):
        remote = RemoteRepository(TestClient(app), access_token=access_token)
        remote.save(_document())

        cleared = remote.clear()
        assert cleared["bank_account_rows"] == []
        assert remote.load()["notes_10"] == 0

    def test_without_token_is_unavailable(self):
        remote = RemoteRepository(TestClient(app))
        with pytest.raises(RepositoryUnavailableError):
            remote.load()

    def test_connection_error_is_unavailable(self):
        remote = RemoteRepository(_unreachable_client())
        with pytest.raises(RepositoryUnavailableError):
            remote.save(_document())

    def test_non_json_response_is_unavailable(self):
        remote = RemoteRepository(_proxy_page_client())
        with pytest.raises(RepositoryUnavailableError):
            remote.load()


class TestLocalRepository:
    """Test the JSON file repository."""

    def test_missing_file_loads_default(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        assert local.load() == default_snapshot()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "cache.json"
        local = LocalRepository(path)

        local.save(_document())

        assert path.exists()
        assert json.loads(path.read_text())["notes_10"] == 2
        assert local.load()["bank_account_rows"][0]["label"] == "AMP"

    def test_save_normalizes(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        snapshot = _document()
        snapshot["notes_5"] = -4
        snapshot["week1_income_rows"] = [{"label": "Sales", "amount": "nope"}]

        stored = local.save(snapshot)
        assert stored["notes_5"] == 0
        assert stored["week1_income_rows"][0]["amount"] == 0
        assert stored["week1_income_rows"][0]["id"]

    def test_unreadable_file_loads_default(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("{not json")
        assert LocalRepository(path).load() == default_snapshot()

    @pytest.mark.parametrize("content", ["null", "[1, 2]", '"text"', "42"])
    def test_non_object_file_loads_default(self, tmp_path, content):
        path = tmp_path / "cache.json"
        path.write_text(content)
        assert LocalRepository(path).load() == default_snapshot()

    def test_malformed_weeks_in_file_are_skipped(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({"notes_10": 1, "additional_weeks": [1, None]}))

        loaded = LocalRepository(path).load()
        assert loaded["notes_10"] == 1
        assert loaded["additional_weeks"] == []

    def test_clear(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        local.save(_document())
        local.clear()
        assert local.load() == default_snapshot()


class TestFallbackRepository:
    """Test remote-first storage with the local cache behind it."""

    def test_load_mirrors_remote_into_cache(self, access_token, tmp_path):
        remote = RemoteRepository(TestClient(app), access_token=access_token)
        remote.save(_document(amount=75))
        local = LocalRepository(tmp_path / "cache.json")

        repository = FallbackRepository(remote, local)
        loaded = repository.load()

        assert repository.remote_available is True
        assert loaded["bank_account_rows"][0]["amount"] == 75
        assert local.load()["bank_account_rows"][0]["amount"] == 75

    def test_load_falls_back_when_unreachable(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        local.save(_document(amount=30))

        repository = FallbackRepository(RemoteRepository(_unreachable_client()), local)
        loaded = repository.load()

        assert repository.remote_available is False
        assert loaded["bank_account_rows"][0]["amount"] == 30

    def test_load_falls_back_when_unauthorized(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        local.save(_document(amount=30))

        repository = FallbackRepository(RemoteRepository(_unauthorized_client()), local)

        assert repository.load()["bank_account_rows"][0]["amount"] == 30
        assert repository.remote_available is False

    def test_load_falls_back_when_cache_is_not_an_object(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("null")

        repository = FallbackRepository(
            RemoteRepository(_unreachable_client()), LocalRepository(path)
        )

        assert repository.load() == default_snapshot()
        assert repository.remote_available is False

    def test_load_falls_back_on_non_json_response(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        local.save(_document(amount=30))

        repository = FallbackRepository(RemoteRepository(_proxy_page_client()), local)

        assert repository.load()["bank_account_rows"][0]["amount"] == 30
        assert repository.remote_available is False

    def test_save_keeps_local_copy_when_unreachable(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        repository = FallbackRepository(RemoteRepository(_unreachable_client()), local)

        stored = repository.save(_document(amount=99))

        assert stored["bank_account_rows"][0]["amount"] == 99
        assert local.load()["bank_account_rows"][0]["amount"] == 99

    def test_save_reaches_remote(self, access_token, tmp_path):
        remote = RemoteRepository(TestClient(app), access_token=access_token)
        repository = FallbackRepository(remote, LocalRepository(tmp_path / "cache.json"))

        repository.save(_document(amount=12))

        assert repository.remote_available is True
        assert remote.load()["bank_account_rows"][0]["amount"] == 12

    def test_clear_when_unreachable(self, tmp_path):
        local = LocalRepository(tmp_path / "cache.json")
        local.save(_document())
        repository = FallbackRepository(RemoteRepository(_unreachable_client()), local)

        assert repository.clear() == default_snapshot()
        assert local.load() == default_snapshot()

    def test_build_repository(self, tmp_path):
        settings = Settings(
            api_base_url="http://api.test",
            local_cache_path=str(tmp_path / "cache.json"),
        )
        repository = build_repository(settings, access_token="abc")

        assert isinstance(repository.remote, RemoteRepository)
        assert repository.remote.access_token == "abc"
        assert repository.local.path == tmp_path / "cache.json"


class TestDebouncedSaver:
    """Test coalescing of rapid saves."""

    def test_flush_writes_latest_only(self):
        repository = MemoryRepository()
        saver = DebouncedSaver(repository, delay=60)

        saver.schedule(_document(amount=1))
        saver.schedule(_document(amount=2))
        saver.schedule(_document(amount=3))
        assert saver.pending

        stored = saver.flush()

        assert len(repository.saved) == 1
        assert stored["bank_account_rows"][0]["amount"] == 3
        assert saver.last_saved == stored
        assert not saver.pending

    def test_flush_with_nothing_pending(self):
        saver = DebouncedSaver(MemoryRepository(), delay=60)
        assert saver.flush() is None

    def test_schedule_copies_snapshot(self):
        repository = MemoryRepository()
        saver = DebouncedSaver(repository, delay=60)
        snapshot = _document(amount=5)

        saver.schedule(snapshot)
        snapshot["bank_account_rows"][0]["amount"] = 500
        saver.flush()

        assert repository.saved[0]["bank_account_rows"][0]["amount"] == 5

    def test_cancel_drops_pending(self):
        repository = MemoryRepository()
        saver = DebouncedSaver(repository, delay=60)

        saver.schedule(_document())
        saver.cancel()

        assert saver.flush() is None
        assert repository.saved == []

    def test_slow_earlier_save_does_not_overwrite_newer(self):
        repository = SlowFirstSaveRepository(first_save_seconds=0.5)
        saver = DebouncedSaver(repository, delay=0.01)

        saver.schedule({"v": 1})
        assert repository.first_save_started.wait(timeout=5)

        saver.delay = 60
        saver.schedule({"v": 2})
        stored = saver.flush()

        assert stored == {"v": 2}
        assert saver.last_saved == {"v": 2}
        assert repository.saved == [{"v": 1}, {"v": 2}]

    def test_timer_saves_after_delay(self):
        repository = MemoryRepository()
        saver = DebouncedSaver(repository, delay=0.05)

        saver.schedule(_document(amount=1))
        saver.schedule(_document(amount=2))

        assert repository.saved_event.wait(timeout=5)
        assert len(repository.saved) == 1
        assert repository.saved[0]["bank_account_rows"][0]["amount"] == 2
