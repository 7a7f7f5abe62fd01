"""
Harvous Backend - Bible.org Verse Service
==========================================

What:  VerseProvider backed by the Bible.org labs API (NET translation).
How:   GET {bible_api_url}?passage=<passage>&formatting=plain&type=json with
       an httpx.AsyncClient, wrapped in tenacity retries and a circuit breaker.
Who:   Singleton `bible_service`, used by the fetch-verse endpoint and the
       scripture processing pipeline; closed from the app lifespan.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
       (transport errors, 429 and 5xx responses)
    2. Circuit breaker shared by all requests of the process
    3. Client-side timeout from settings.bible_api_timeout

Upstream payload (one object per verse):
    [{"bookname": "John", "chapter": "3", "verse": "16", "text": "For this is..."}]
"""

import logging
import time
import uuid
from typing import Any, List, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
    before_sleep_log,
)

from harvous.config import settings
from harvous.exceptions import CircuitBreakerOpenError, VerseServiceError
from harvous.services.verse_provider import Verse, VerseProvider

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the verse API.

    State Machine:
        CLOSED    → failures increment failure_count; at threshold → OPEN
        OPEN      → calls raise CircuitBreakerOpenError until recovery_timeout
                    has elapsed, then → HALF_OPEN
        HALF_OPEN → one call goes through; success → CLOSED, failure → OPEN

    Not thread-safe: uvicorn async workers run requests on one event loop per
    process, and each process keeps its own breaker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns:
            True if the call may proceed.

        Raises:
            CircuitBreakerOpenError: OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=max(remaining, 1))

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


# ══════════════════════════════════════════════════════════════════════════
# Bible.org Service
# ══════════════════════════════════════════════════════════════════════════

class BibleOrgService(VerseProvider):
    """
    Error Handling Chain:
        request fails → tenacity retries transient failures
        → retries exhausted or non-transient error → record breaker failure
        → VerseServiceError (503)
        → threshold reached → later calls rejected by the breaker (503)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        translation: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.bible_api_url
        self.translation = translation or settings.bible_translation
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "BibleOrgService initialized with url=%s, translation=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.base_url,
            self.translation,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=settings.bible_api_timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def fetch_passage(self, passage: str) -> List[Verse]:
        """
        Fetch the verses of one passage.

        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. GET with retry logic
            3. Record success/failure in circuit breaker
            4. Convert the payload into Verse objects

        Raises:
            CircuitBreakerOpenError: Circuit is open
            VerseServiceError: Upstream failed or returned an unreadable payload
        """
        request_id = str(uuid.uuid4())[:8]

        self.circuit_breaker.can_execute()

        logger.info("[%s] Fetching passage '%s'", request_id, passage)

        try:
            payload = await self._get_with_retry(passage, request_id)
            verses = self._to_verses(payload)
        except CircuitBreakerOpenError:
            raise
        except httpx.HTTPError as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Verse API request failed: %s", request_id, str(e))
            raise VerseServiceError(
                message="Could not fetch verse text. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"request_id": request_id, "passage": passage},
            )
        except (ValueError, KeyError, TypeError) as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] Unreadable verse API payload: %s", request_id, str(e), exc_info=True,
            )
            raise VerseServiceError(
                message="The verse service returned an unexpected response.",
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        self.circuit_breaker.record_success()
        return verses

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=0.5,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_with_retry(self, passage: str, request_id: str) -> Any:
        start_time = time.time()
        response = await self.client.get(
            self.base_url,
            params={"passage": passage, "formatting": "plain", "type": "json"},
        )
        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            logger.warning(
                "[%s] Verse API returned %d after %.0fms",
                request_id, response.status_code, duration_ms,
            )
        response.raise_for_status()

        logger.info(
            "[%s] Verse API responded in %.0fms (%d bytes)",
            request_id, duration_ms, len(response.content),
        )
        if not response.content.strip():
            return []
        return response.json()

    @staticmethod
    def _to_verses(payload: Any) -> List[Verse]:
        if not isinstance(payload, list):
            raise TypeError(f"expected a list of verses, got {type(payload).__name__}")
        return [
            Verse(
                book=item["bookname"],
                chapter=int(item["chapter"]),
                verse=int(item["verse"]),
                text=str(item["text"]).strip(),
            )
            for item in payload
        ]

    async def health_check(self) -> str:
        """Reports the breaker state without calling the upstream API."""
        if self.circuit_breaker.state == CircuitBreaker.OPEN:
            return "circuit_open"
        if self.circuit_breaker.state == CircuitBreaker.HALF_OPEN:
            return "recovering"
        return "available"


# Shared instance: the circuit breaker state must be shared across requests.
bible_service = BibleOrgService()
