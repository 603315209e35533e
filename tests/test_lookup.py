"""
Tests for the Remote Lookup Client and the Lookup Service

These tests verify:
- build_query_text(): okurigana hint shaping
- TransliterateClient.lookup(): request parameters and failure collapse
- LookupService.resolve(): cache first, one remote call per miss,
  no negative caching, errors returned as results

Run with: python -m pytest tests/test_lookup.py -v
"""

import os

import pytest
import requests

from skkserv.cache.store import CacheStore
from skkserv.lookup.client import TransliterateClient, build_query_text, extract_conversion
from skkserv.lookup.service import LookupService, LookupStatus

NOW = 1_700_000_000
TTL = 86400


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body_error=None):
        self.status_code = status_code
        self._payload = payload
        self._body_error = body_error

    def json(self):
        if self._body_error is not None:
            raise self._body_error
        return self._payload


class FakeSession:
    """Records get() calls and replays a canned response or exception."""

    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response

    def close(self):
        self.closed = True


class FailingClient:
    """Remote client whose lookups raise."""

    def __init__(self):
        self.calls = 0

    def lookup(self, reading):
        self.calls += 1
        raise RuntimeError("remote exploded")


class TestBuildQueryText:
    """Test request shaping of readings."""

    @pytest.mark.parametrize("reading,expected", [
        ("たべる", "たべる"),
        ("たべr", "たべ,r"),
        ("かk", "か,k"),
        ("neko", "neko"),
        ("r", "r"),
        ("たべR", "たべR"),
        ("", ""),
    ])
    def test_shaping(self, reading, expected):
        assert build_query_text(reading) == expected


class TestExtractConversion:
    """Test payload parsing."""

    def test_joins_candidates(self):
        assert extract_conversion([["ねこ", ["猫", "根古"]]]) == "猫/根古"

    def test_uses_first_segment_only(self):
        payload = [["たべ", ["食べ", "喰べ"]], ["r", ["r"]]]
        assert extract_conversion(payload) == "食べ/喰べ"

    @pytest.mark.parametrize("payload", [
        [],
        [[]],
        [["ねこ"]],
        [["ねこ", []]],
        [["ねこ", "猫"]],
        [["ねこ", [1, 2]]],
        {"ねこ": ["猫"]},
        None,
    ])
    def test_malformed_payload(self, payload):
        assert extract_conversion(payload) is None


class TestTransliterateClient:
    """Test the HTTP client against a fake session."""

    def test_lookup_success(self):
        session = FakeSession(FakeResponse(payload=[["ねこ", ["猫", "根古"]]]))
        client = TransliterateClient(url="http://example.test/t", session=session, timeout=10)

        assert client.lookup("ねこ") == "猫/根古"

    def test_request_parameters(self):
        session = FakeSession(FakeResponse(payload=[["たべ", ["食べ"]]]))
        client = TransliterateClient(url="http://example.test/t", session=session, timeout=10)

        client.lookup("たべr")

        assert session.calls == [{
            "url": "http://example.test/t",
            "params": {"langpair": "ja-Hira|ja", "text": "たべ,r"},
            "timeout": 10,
        }]

    def test_timeout_returns_none(self):
        session = FakeSession(exc=requests.Timeout("slow"))
        client = TransliterateClient(session=session)

        assert client.lookup("ねこ") is None

    def test_connection_error_returns_none(self):
        session = FakeSession(exc=requests.ConnectionError("refused"))
        client = TransliterateClient(session=session)

        assert client.lookup("ねこ") is None

    def test_http_error_status_returns_none(self):
        session = FakeSession(FakeResponse(status_code=503))
        client = TransliterateClient(session=session)

        assert client.lookup("ねこ") is None

    def test_invalid_json_returns_none(self):
        session = FakeSession(FakeResponse(body_error=ValueError("not json")))
        client = TransliterateClient(session=session)

        assert client.lookup("ねこ") is None

    def test_failure_is_logged(self, caplog):
        session = FakeSession(FakeResponse(status_code=500))
        client = TransliterateClient(session=session)

        with caplog.at_level("WARNING"):
            client.lookup("ねこ")

        assert "HTTP 500" in caplog.text

    def test_injected_session_not_closed(self):
        session = FakeSession()
        with TransliterateClient(session=session):
            pass
        assert session.closed is False


class TestLookupService:
    """Test cache/remote composition."""

    def test_miss_calls_remote_and_caches(self, service, stub_client, store):
        result = service.resolve("ねこ", NOW)

        assert result.status == LookupStatus.FOUND
        assert result.conversion == "猫"
        assert result.cached is False
        assert stub_client.calls == ["ねこ"]
        assert store.get("ねこ", NOW).conversion == "猫"

    def test_hit_skips_remote(self, service, stub_client):
        service.resolve("ねこ", NOW)
        result = service.resolve("ねこ", NOW + 60)

        assert result.status == LookupStatus.FOUND
        assert result.cached is True
        assert stub_client.calls == ["ねこ"]

    def test_hit_does_not_touch_file(self, service, cache_path):
        service.resolve("ねこ", NOW)
        before = os.stat(cache_path).st_mtime_ns
        os.utime(cache_path, ns=(0, 0))

        service.resolve("ねこ", NOW + 1)

        assert os.stat(cache_path).st_mtime_ns == 0
        assert before != 0

    def test_not_found_is_not_cached(self, service, stub_client, store, cache_path):
        result = service.resolve("みしらぬ", NOW)

        assert result.status == LookupStatus.NOT_FOUND
        assert store.size() == 0
        assert not os.path.exists(cache_path)

        # Every lookup of an unknown reading retries the remote
        service.resolve("みしらぬ", NOW + 1)
        assert stub_client.calls == ["みしらぬ", "みしらぬ"]

    def test_one_remote_call_per_miss(self, service, stub_client):
        service.resolve("ねこ", NOW)
        service.resolve("みしらぬ", NOW)

        assert len(stub_client.calls) == 2

    def test_stale_entry_refreshed(self, service, stub_client, store):
        store.put("ねこ", "古い", NOW)

        result = service.resolve("ねこ", NOW + TTL)

        assert result.conversion == "猫"
        assert stub_client.calls == ["ねこ"]
        assert store.get("ねこ", NOW + TTL).created_at == NOW + TTL

    def test_remote_exception_becomes_error(self, store):
        client = FailingClient()
        service = LookupService(store=store, client=client)

        result = service.resolve("ねこ", NOW)

        assert result.status == LookupStatus.ERROR
        assert "remote exploded" in result.message
        assert client.calls == 1
        assert store.size() == 0

    def test_persist_failure_becomes_error(self, tmp_path, stub_client):
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = CacheStore(path=str(blocker / "cache.tsv"))
        service = LookupService(store=store, client=stub_client)

        result = service.resolve("ねこ", NOW)

        assert result.status == LookupStatus.ERROR

    def test_stats(self, service):
        service.resolve("ねこ", NOW)
        service.resolve("ねこ", NOW)
        service.resolve("みしらぬ", NOW)

        stats = service.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 2
        assert stats["errors"] == 0
        assert stats["cache_stats"]["total_entries"] == 1

    def test_undecodable_cache_line_does_not_break_resolve(self, cache_path, stub_client):
        with open(cache_path, "wb") as fh:
            fh.write(f"{NOW}\tねこ\t猫\n".encode("utf-8"))
            fh.write(b"123\t\xff\xfe\tbad\n")
        service = LookupService(store=CacheStore(path=cache_path), client=stub_client)

        cached = service.resolve("ねこ", NOW)
        fetched = service.resolve("かんじ", NOW)

        assert cached.status == LookupStatus.FOUND
        assert cached.cached is True
        assert fetched.status == LookupStatus.FOUND
        assert stub_client.calls == ["かんじ"]

    def test_empty_reading_goes_to_remote(self, service, stub_client):
        result = service.resolve("", NOW)

        assert result.status == LookupStatus.NOT_FOUND
        assert stub_client.calls == [""]
