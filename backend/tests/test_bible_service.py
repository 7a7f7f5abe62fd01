"""
Harvous Backend - Verse Service Unit Tests (Mocked Transport)
==============================================================

What:  Tests for BibleOrgService and its CircuitBreaker.
How:   httpx.MockTransport stands in for the Bible.org API, so no request
       leaves the process. conftest keeps retries at 2 attempts with no wait.

What we test:
    ✅ Circuit breaker state machine
    ✅ Successful fetch: request params and Verse parsing
    ✅ Transient failures retried, permanent ones not
    ✅ Open circuit rejects calls without touching the API
    ✅ Verse lists fetched group by group and rendered as labelled HTML
"""

import time

import httpx
import pytest

from harvous.exceptions import CircuitBreakerOpenError, VerseServiceError
from harvous.scripture import parse_reference
from harvous.services.bible_service import BibleOrgService, CircuitBreaker
from harvous.services.verse_provider import GROUP_DIVIDER

API_URL = "https://bible.test/api/"


def _verse(book, chapter, verse, text):
    return {"bookname": book, "chapter": str(chapter), "verse": str(verse), "text": text}


def _service(handler) -> BibleOrgService:
    return BibleOrgService(base_url=API_URL, translation="NET", transport=httpx.MockTransport(handler))


class TestCircuitBreaker:

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0
        assert cb.can_execute() is True

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.state == "closed"
        cb.can_execute()

    def test_opens_at_threshold_and_rejects(self):
        cb = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.state == "open"

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert 1 <= exc_info.value.recovery_time <= 60

    def test_success_resets(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == "closed"

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        assert cb.state == "open"

        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_half_open_failure_reopens(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=0)
        cb.state = CircuitBreaker.HALF_OPEN
        cb.record_failure()
        assert cb.state == "open"

    def test_half_open_success_closes(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=0)
        cb.state = CircuitBreaker.HALF_OPEN
        cb.record_success()
        assert cb.state == "closed"


class TestBibleOrgService:

    @pytest.mark.asyncio
    async def test_fetch_passage_success(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[_verse("John", 3, 16, " For this is the way God loved the world ")])

        service = _service(handler)
        verses = await service.fetch_passage("John 3:16")
        await service.aclose()

        assert len(verses) == 1
        assert verses[0].book == "John"
        assert verses[0].chapter == 3
        assert verses[0].verse == 16
        assert verses[0].text == "For this is the way God loved the world"

        params = seen[0].url.params
        assert params["passage"] == "John 3:16"
        assert params["formatting"] == "plain"
        assert params["type"] == "json"

    @pytest.mark.asyncio
    async def test_empty_body_means_no_verses(self):
        service = _service(lambda request: httpx.Response(200, content=b""))
        assert await service.fetch_passage("John 99:1") == []
        await service.aclose()

    @pytest.mark.asyncio
    async def test_server_error_is_retried_then_fails(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        service = _service(handler)
        with pytest.raises(VerseServiceError):
            await service.fetch_passage("John 3:16")
        await service.aclose()

        assert len(calls) == 2
        assert service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        service = _service(handler)
        with pytest.raises(VerseServiceError):
            await service.fetch_passage("John 3:16")
        await service.aclose()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_unreadable_payload(self):
        service = _service(lambda request: httpx.Response(200, json={"error": "nope"}))
        with pytest.raises(VerseServiceError):
            await service.fetch_passage("John 3:16")
        await service.aclose()

    @pytest.mark.asyncio
    async def test_open_circuit_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[])

        service = _service(handler)
        service.circuit_breaker.state = CircuitBreaker.OPEN
        service.circuit_breaker.last_failure_time = time.time()

        with pytest.raises(CircuitBreakerOpenError):
            await service.fetch_passage("John 3:16")
        await service.aclose()

        assert calls == []

    @pytest.mark.asyncio
    async def test_health_check_reports_breaker_state(self):
        service = _service(lambda request: httpx.Response(200, json=[]))
        assert await service.health_check() == "available"

        service.circuit_breaker.state = CircuitBreaker.HALF_OPEN
        assert await service.health_check() == "recovering"

        service.circuit_breaker.state = CircuitBreaker.OPEN
        assert await service.health_check() == "circuit_open"


class TestFetchReference:

    @pytest.mark.asyncio
    async def test_single_range_joined_with_spaces(self):
        def handler(request):
            return httpx.Response(200, json=[
                _verse("John", 3, 16, "For God so loved."),
                _verse("John", 3, 17, "For God did not send."),
            ])

        service = _service(handler)
        passage = await service.fetch_reference(parse_reference("John 3:16-17"))
        await service.aclose()

        assert passage.reference == "John 3:16-17"
        assert passage.translation == "NET"
        assert passage.text == "For God so loved. For God did not send."
        assert not passage.is_empty

    @pytest.mark.asyncio
    async def test_verse_list_fetched_per_group(self):
        upstream = {
            "Matthew 26:6-7": [
                _verse("Matthew", 26, 6, "Now while Jesus was in Bethany."),
                _verse("Matthew", 26, 7, "A woman came to him."),
            ],
            "Matthew 26:9-9": [_verse("Matthew", 26, 9, "It could have been sold.")],
        }
        requested = []

        def handler(request):
            passage = request.url.params["passage"]
            requested.append(passage)
            return httpx.Response(200, json=upstream[passage])

        service = _service(handler)
        passage = await service.fetch_reference(parse_reference("Matthew 26:6-7, 9"))
        await service.aclose()

        assert sorted(requested) == ["Matthew 26:6-7", "Matthew 26:9-9"]
        assert len(passage.verses) == 3
        assert "<p><strong>Verses 6-7:</strong></p>" in passage.text
        assert "<p><strong>Verse 9:</strong></p>" in passage.text
        assert passage.text.count(GROUP_DIVIDER) == 1
        assert passage.text.index("Verses 6-7") < passage.text.index("Verse 9:")

    @pytest.mark.asyncio
    async def test_nothing_found_is_empty(self):
        service = _service(lambda request: httpx.Response(200, json=[]))
        passage = await service.fetch_reference(parse_reference("John 3:16"))
        await service.aclose()
        assert passage.is_empty
        assert passage.text == ""
