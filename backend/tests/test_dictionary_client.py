"""Tests for the dictionary API client"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock
from urllib.parse import unquote

import httpx
import pytest

from conftest import DICTIONARY_PAYLOADS, TEST_DICTIONARY_URL
from wordsapi.core.errors import TransportFailure, WordNotFound
from wordsapi.services import dictionary_client as dictionary_client_module
from wordsapi.services.dictionary_client import DictionaryClient, close_dictionary_client, get_dictionary_client


def client_for(handler) -> DictionaryClient:
    return DictionaryClient(base_url=TEST_DICTIONARY_URL, timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.mark.high
class TestDictionaryClient:
    """HTTP behaviour and payload conversion"""

    def test_fetch_converts_payload(self, dictionary_client, dictionary_api):
        entry = dictionary_client.fetch("serendipity")

        assert dictionary_api.requests == ["serendipity"]
        assert entry.id is None
        assert entry.word == "serendipity"
        assert entry.phonetic == "/ˌsɛɹ.ənˈdɪp.ɪ.ti/"
        assert entry.meanings[0].part_of_speech == "noun"
        assert entry.meanings[0].synonyms == ["fluke", "luck"]
        assert entry.meanings[0].definitions[0].synonyms == ["chance"]
        assert entry.source_urls == ["https://en.wiktionary.org/wiki/serendipity"]

    def test_missing_lists_default_to_empty(self, dictionary_client):
        entry = dictionary_client.fetch("ubiquitous")

        assert entry.phonetic is None
        assert entry.phonetics == []
        assert entry.source_urls == []
        assert entry.meanings[0].synonyms == []
        assert entry.meanings[0].definitions[0].antonyms == []

    def test_requests_configured_endpoint(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=DICTIONARY_PAYLOADS["ubiquitous"])

        with client_for(handler) as client:
            client.fetch("ubiquitous")

        assert seen == [f"{TEST_DICTIONARY_URL}/ubiquitous"]

    def test_only_first_entry_is_used(self):
        payload = DICTIONARY_PAYLOADS["ubiquitous"] + [{"word": "ubiquitous", "meanings": []}]

        with client_for(lambda request: httpx.Response(200, json=payload)) as client:
            entry = client.fetch("ubiquitous")

        assert len(entry.meanings) == 1

    def test_404_is_not_found(self, dictionary_client):
        with pytest.raises(WordNotFound):
            dictionary_client.fetch("qwzxv")

    @pytest.mark.parametrize("status_code", [400, 429, 500, 503])
    def test_other_status_is_transport_failure(self, status_code):
        with client_for(lambda request: httpx.Response(status_code, text="nope")) as client:
            with pytest.raises(TransportFailure) as exc_info:
                client.fetch("serendipity")

        assert str(status_code) in str(exc_info.value)

    def test_timeout_is_transport_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with client_for(handler) as client:
            with pytest.raises(TransportFailure):
                client.fetch("serendipity")

    def test_connection_error_is_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with client_for(handler) as client:
            with pytest.raises(TransportFailure):
                client.fetch("serendipity")

    @pytest.mark.parametrize("response", [
        httpx.Response(200, json=[]),
        httpx.Response(200, json={"word": "serendipity"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=[{"meanings": []}]),
        httpx.Response(200, json=["serendipity"]),
    ])
    def test_unusable_payload_is_transport_failure(self, response):
        with client_for(lambda request: response) as client:
            with pytest.raises(TransportFailure):
                client.fetch("serendipity")

    def test_word_is_escaped_in_the_path(self):
        seen = []

        def handler(request):
            raw_word = request.url.raw_path.decode("ascii").split("?", 1)[0].rsplit("/", 1)[-1]
            seen.append((unquote(raw_word), request.url.query))
            return httpx.Response(404)

        with client_for(handler) as client:
            with pytest.raises(WordNotFound):
                client.fetch("serendipity?x=1")
            with pytest.raises(WordNotFound):
                client.fetch("a/b")

        assert seen == [("serendipity?x=1", b""), ("a/b", b"")]


@pytest.mark.medium
class TestSharedClient:
    """Process-wide client used by the routers"""

    def test_concurrent_first_use_builds_one_client(self, monkeypatch):
        monkeypatch.setattr(dictionary_client_module, "_dictionary_client", None)
        created = []
        start = threading.Barrier(8)

        def slow_client():
            time.sleep(0.05)
            client = MagicMock(spec=DictionaryClient)
            created.append(client)
            return client

        def first_use():
            start.wait()
            return get_dictionary_client()

        monkeypatch.setattr(dictionary_client_module, "DictionaryClient", slow_client)
        with ThreadPoolExecutor(max_workers=8) as pool:
            clients = list(pool.map(lambda _: first_use(), range(8)))

        assert len(created) == 1
        assert all(c is created[0] for c in clients)

        close_dictionary_client()
        created[0].close.assert_called_once()
        assert dictionary_client_module._dictionary_client is None
