"""
Harvous Backend - API Route Tests
==================================

What:  Request/response behavior of the HTTP layer: status codes, camelCase
       bodies, the shared error body and middleware headers.
How:   httpx.AsyncClient over ASGITransport (test_client fixture); services
       are patched so no database or Bible.org call is made.

What we test:
    ✅ POST /api/scripture/detect success and every malformed payload
    ✅ Missing user header → 401
    ✅ fetch-verse error mapping (400 / 503)
    ✅ auto-tags action validation
    ✅ /health status levels
    ✅ Rate limiter window
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from harvous.exceptions import CircuitBreakerOpenError, ParseError, RateLimitExceededError
from harvous.middleware.rate_limit import RateLimitMiddleware
from harvous.schemas.scripture import CheckExistingResponse, VerseResponse
from harvous.services.scripture_service import scripture_service


class TestDetectEndpoint:

    @pytest.mark.asyncio
    async def test_detect_success(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/scripture/detect",
            json={"text": "Read John 3:16 today"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["isScripture"] is True
        assert body["type"] == "reference"
        assert body["confidence"] == pytest.approx(0.9)
        assert body["primaryReference"] == "John 3:16"
        assert body["matches"][0]["startOffset"] == 5
        assert body["matches"][0]["verseStart"] == 16
        assert body["parsedReference"]["book"] == "John"
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_detect_no_match(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/scripture/detect", json={"text": "Just a thought"}, headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["isScripture"] is False
        assert body["matches"] == []
        assert body["primaryReference"] is None

    @pytest.mark.asyncio
    async def test_detect_whitespace_only_text(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/scripture/detect", json={"text": "   "}, headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["isScripture"] is False
        assert response.json()["matches"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"text": ""}, {"text": 42}, {}, ["John 3:16"]])
    async def test_detect_invalid_payload(self, test_client, auth_headers, payload):
        response = await test_client.post("/api/scripture/detect", json=payload, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert "request_id" in body

    @pytest.mark.asyncio
    async def test_detect_without_body(self, test_client, auth_headers):
        response = await test_client.post("/api/scripture/detect", headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_user_header(self, test_client):
        response = await test_client.post("/api/scripture/detect", json={"text": "John 3:16"})

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"


class TestVerseEndpoints:

    @pytest.mark.asyncio
    async def test_fetch_verse(self, test_client, auth_headers):
        verse = VerseResponse(
            reference="John 3:16", book="John", chapter=3, verse=16,
            translation="NET", text="For this is the way God loved the world.",
        )
        with patch.object(scripture_service, "fetch_verse", AsyncMock(return_value=verse)) as fetch:
            response = await test_client.post(
                "/api/scripture/fetch-verse", json={"reference": "Jn 3:16"}, headers=auth_headers,
            )

        assert response.status_code == 200
        assert response.json()["verseEnd"] is None
        assert response.json()["text"].startswith("For this")
        fetch.assert_awaited_once_with("Jn 3:16")

    @pytest.mark.asyncio
    async def test_fetch_verse_bad_reference(self, test_client, auth_headers):
        error = ParseError("Unrecognized book 'Xyz'", reference="Xyz 1:1")
        with patch.object(scripture_service, "fetch_verse", AsyncMock(side_effect=error)):
            response = await test_client.post(
                "/api/scripture/fetch-verse", json={"reference": "Xyz 1:1"}, headers=auth_headers,
            )

        assert response.status_code == 400
        assert response.json()["error"] == "parse_error"

    @pytest.mark.asyncio
    async def test_fetch_verse_circuit_open(self, test_client, auth_headers):
        error = CircuitBreakerOpenError(recovery_time=30)
        with patch.object(scripture_service, "fetch_verse", AsyncMock(side_effect=error)):
            response = await test_client.post(
                "/api/scripture/fetch-verse", json={"reference": "John 3:16"}, headers=auth_headers,
            )

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"
        assert response.json()["error"] == "service_unavailable"

    @pytest.mark.asyncio
    async def test_check_existing(self, test_client, auth_headers):
        note_id = uuid4()
        found = CheckExistingResponse(exists=True, note_id=note_id, reference="John 3:16", in_unorganized=True)
        with patch.object(scripture_service, "check_existing", AsyncMock(return_value=found)):
            response = await test_client.post(
                "/api/scripture/check-existing", json={"reference": "John 3:16"}, headers=auth_headers,
            )

        assert response.status_code == 200
        body = response.json()
        assert body["noteId"] == str(note_id)
        assert body["inUnorganized"] is True
        assert body["inThread"] is False


class TestAutoTagsEndpoint:

    @pytest.mark.asyncio
    async def test_unknown_action(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/notes/auto-tags", json={"action": "delete"}, headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "action"

    @pytest.mark.asyncio
    async def test_apply_requires_note_id(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/notes/auto-tags", json={"action": "apply", "noteContent": "prayer"}, headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_generate_saves_nothing(self, test_client, auth_headers, mock_db_session):
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        mock_db_session.execute.return_value = result

        response = await test_client.post(
            "/api/notes/auto-tags",
            json={"action": "generate", "noteTitle": "Prayer", "noteContent": "<p>faith and prayer</p>"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["applied"] is None
        assert {s["keyword"] for s in body["suggestions"]} >= {"Prayer", "Faith"}
        mock_db_session.add.assert_not_called()


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        with patch("harvous.routes.health.check_database", AsyncMock(return_value="connected")):
            response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["bible_api"] == "available"

    @pytest.mark.asyncio
    async def test_database_down(self, test_client):
        with patch("harvous.routes.health.check_database", AsyncMock(return_value="disconnected")):
            response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestRateLimiter:

    def test_window(self):
        limiter = RateLimitMiddleware(MagicMock(), max_requests=2, window_seconds=60)
        limiter.check("user:a", 1000.0)
        limiter.check("user:a", 1001.0)

        with pytest.raises(RateLimitExceededError) as exc_info:
            limiter.check("user:a", 1002.0)
        assert exc_info.value.retry_after == 59

        limiter.check("user:b", 1002.0)
        limiter.check("user:a", 1061.0)
