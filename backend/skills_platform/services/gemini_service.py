"""
Skills Platform Backend — Google Gemini Service Implementation
================================================================

What:  Concrete LLM service calling Google Gemini for grading, recommendations,
       performance analysis and task evaluation.
Why:   Gemini's free tier covers a school's grading volume, and it writes
       Arabic feedback well.
How:   Sends a text prompt, returns the reply text. Every call goes through a
       circuit breaker and a tenacity retry with exponential backoff.
Who:   Created once at import; used by GradingService.

Disabled mode:
    Without GEMINI_API_KEY the service is constructed but `enabled` is False.
    GradingService checks that before building prompts and answers 503
    ai_unavailable, so the rest of the API keeps working.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker so a Gemini outage fails fast instead of holding
       requests for the full retry schedule
    3. Per-call timeout passed to the SDK
"""

import logging
import time
import uuid
from typing import Optional

import google.generativeai as genai
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
    RetryError,
)

from skills_platform.config import settings
from skills_platform.exceptions import CircuitBreakerOpenError, LLMServiceError
from skills_platform.services.llm_base import LLMService

logger = logging.getLogger(__name__)

AI_DISABLED = "disabled"
AI_AVAILABLE = "available"
AI_UNAVAILABLE = "unavailable"
AI_CIRCUIT_OPEN = "circuit_open"


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker around the Gemini API.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe: uvicorn's async workers share one process and one
    event loop, and the counters are only touched between awaits.
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
        Check if a request is allowed through the circuit breaker.

        Raises:
            CircuitBreakerOpenError if the circuit is OPEN and the recovery
            timeout has not elapsed.
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
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    @property
    def is_open(self) -> bool:
        """True while calls would be rejected. Does not change state."""
        if self.state != self.OPEN:
            return False
        elapsed = time.time() - (self.last_failure_time or 0)
        return elapsed < self.recovery_timeout

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        """Record a failed API call. May trigger CLOSED → OPEN."""
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


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════

class GeminiService(LLMService):
    """
    Google Gemini implementation of LLMService.

    Error Handling Chain:
        API call fails → tenacity retries (RETRY_MAX_ATTEMPTS, with backoff)
        → All retries fail → LLMServiceError, circuit breaker failure recorded
        → Threshold reached → future calls rejected instantly (503)
        → Recovery timeout → one trial call (HALF_OPEN)
        → Trial succeeds → CLOSED
    """

    def __init__(self):
        self.enabled = settings.ai_enabled
        if self.enabled:
            genai.configure(api_key=settings.gemini_api_key)

        # Constructing the model object makes no network call
        self.model = genai.GenerativeModel(settings.gemini_model)

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiService initialized with model=%s, enabled=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            settings.gemini_model,
            self.enabled,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    async def generate(self, prompt: str) -> str:
        """
        Send a prompt to Gemini and return the reply text.

        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. Call Gemini with retry logic
            3. Record success/failure in circuit breaker

        Raises:
            CircuitBreakerOpenError: Circuit is open (too many recent failures)
            LLMServiceError: Gemini failed after all retry attempts
        """
        call_id = str(uuid.uuid4())[:8]

        self.circuit_breaker.can_execute()

        logger.info("[%s] Sending prompt to Gemini (%d chars)", call_id, len(prompt))

        try:
            result = await self._call_gemini_with_retry(prompt, call_id)
        except RetryError as e:
            self.circuit_breaker.record_failure()
            last_error = e.last_attempt.exception() if e.last_attempt else None
            logger.error(
                "[%s] All Gemini retries exhausted: %s",
                call_id,
                str(last_error) if last_error else "Unknown error",
            )
            raise LLMServiceError(
                message="The AI service failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"call_id": call_id, "attempts": settings.retry_max_attempts},
            ) from e
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] Unexpected Gemini error: %s",
                call_id,
                str(e),
                exc_info=True,
            )
            raise LLMServiceError(
                message="An unexpected error occurred while contacting the AI service.",
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        self.circuit_breaker.record_success()
        return result

    @retry(
        # The SDK raises generic exceptions for quota, network and server errors
        retry=retry_if_exception_type(Exception),
        stop=stop_after_attempt(settings.retry_max_attempts),
        # wait = min(max_wait, min_wait * 2^attempt) + random(0, 1)
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _call_gemini_with_retry(self, prompt: str, call_id: str) -> str:
        """
        Makes the actual Gemini API call. Only this call is retried; the
        circuit breaker check in generate() runs once per request.
        """
        start_time = time.time()

        try:
            response = await self.model.generate_content_async(
                prompt,
                request_options={"timeout": settings.gemini_timeout},
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "[%s] Gemini API call failed after %.0fms: %s",
                call_id,
                duration_ms,
                str(e),
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        text = response.text.strip() if response.text else ""

        logger.info(
            "[%s] Gemini replied in %.0fms with %d chars",
            call_id,
            duration_ms,
            len(text),
        )
        return text

    async def health_check(self) -> bool:
        """
        Lists models to verify the key and connectivity. Spends no tokens.
        """
        try:
            models = genai.list_models()
            model_names = [m.name for m in models]
            target = f"models/{settings.gemini_model}"
            if target not in model_names:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False

    async def status(self) -> str:
        """AI status reported by GET /api/health."""
        if not self.enabled:
            return AI_DISABLED
        if self.circuit_breaker.is_open:
            return AI_CIRCUIT_OPEN
        return AI_AVAILABLE if await self.health_check() else AI_UNAVAILABLE


# Shared so the circuit breaker state is shared across requests
gemini_service = GeminiService()
