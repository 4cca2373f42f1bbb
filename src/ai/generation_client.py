"""
Generation Client - structured chat completions against OpenAI.

Every call returns a GenerationResult; transport, status and parse
failures are classified instead of raised so callers can fall back.
"""

import asyncio
import json
import time
from typing import Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from src.ai.prompts import SYSTEM_PROMPT, PromptContext, normalize_payload, target_model
from src.ai.types import ArtifactKind, GenerationErrorKind, GenerationResult
from src.config import Settings, get_settings
from src.logging_config import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
TIMEOUT_STATUSES = frozenset({408, 504})


def classify_status(status_code: int) -> GenerationErrorKind:
    if status_code == 429:
        return GenerationErrorKind.RATE_LIMITED
    if status_code in TIMEOUT_STATUSES:
        return GenerationErrorKind.TIMEOUT
    return GenerationErrorKind.GENERIC


def strip_code_fences(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def _aborted(abort: Optional[asyncio.Event]) -> bool:
    return abort is not None and abort.is_set()


class GenerationClient:
    """
    Thin wrapper over ``AsyncOpenAI`` with its own retry loop.

    The SDK's built-in retries are disabled so the retry loop can observe
    the abort signal.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or self.settings.ai_configured

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.openai_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def generate(
        self,
        kind: ArtifactKind,
        context: PromptContext,
        abort: Optional[asyncio.Event] = None,
    ) -> GenerationResult:
        """
        Request one artifact.

        Args:
            kind: Artifact kind; selects the response schema
            context: Typed prompt context for ``kind``
            abort: Set to cancel; observed during the request and during backoff

        Returns:
            succeeded with the validated artifact, failed with an error kind,
            or cancelled
        """
        if not self.configured:
            return GenerationResult.failed(kind, GenerationErrorKind.GENERIC, "OpenAI API key not configured")

        prompt = context.render()
        max_retries = max(0, self.settings.generation_max_retries)
        attempts = 0

        for attempt in range(max_retries + 1):
            if _aborted(abort):
                return GenerationResult.cancelled(kind, attempts)
            attempts += 1
            start = time.perf_counter()
            try:
                raw = await self._complete_or_abort(prompt, abort)
            except APITimeoutError as exc:
                error_kind, retryable, message = GenerationErrorKind.TIMEOUT, True, str(exc)
            except APIStatusError as exc:
                error_kind = classify_status(exc.status_code)
                retryable = exc.status_code in RETRYABLE_STATUSES
                message = f"HTTP {exc.status_code}: {exc.message}"
            except APIConnectionError as exc:
                error_kind, retryable, message = GenerationErrorKind.GENERIC, True, str(exc)
            else:
                if raw is None or _aborted(abort):
                    return GenerationResult.cancelled(kind, attempts)
                try:
                    artifact = self.parse(kind, raw)
                except ValueError as exc:
                    logger.warning(
                        "Generation response rejected",
                        extra={"kind": kind.value, "attempt": attempts, "error": str(exc)[:200]},
                    )
                    if _aborted(abort):
                        return GenerationResult.cancelled(kind, attempts)
                    return GenerationResult.failed(
                        kind, GenerationErrorKind.GENERIC, "Invalid model response", attempts
                    )
                logger.info(
                    "Generation succeeded",
                    extra={
                        "kind": kind.value,
                        "attempt": attempts,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                    },
                )
                return GenerationResult.succeeded(kind, artifact, attempts, self.settings.openai_model)

            logger.warning(
                "Generation attempt failed",
                extra={
                    "kind": kind.value,
                    "attempt": attempts,
                    "error_kind": error_kind.value,
                    "retryable": retryable,
                },
            )
            if _aborted(abort):
                return GenerationResult.cancelled(kind, attempts)
            if not retryable or attempt == max_retries:
                return GenerationResult.failed(kind, error_kind, message, attempts)

            delay = self.settings.generation_backoff_base_seconds * (2 ** attempt)
            logger.info("Retrying generation", extra={"kind": kind.value, "attempt": attempts, "delay_s": delay})
            if await self._wait_or_abort(delay, abort):
                return GenerationResult.cancelled(kind, attempts)

        return GenerationResult.failed(kind, GenerationErrorKind.GENERIC, "Retries exhausted", attempts)

    async def _complete(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""

    async def _complete_or_abort(self, prompt: str, abort: Optional[asyncio.Event]) -> Optional[str]:
        """Run one request; None when the abort signal fired before the answer arrived."""
        if abort is None:
            return await self._complete(prompt)
        request = asyncio.ensure_future(self._complete(prompt))
        aborted = asyncio.ensure_future(abort.wait())
        try:
            done, _ = await asyncio.wait({request, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            aborted.cancel()
            if not request.done():
                request.cancel()
        if request not in done:
            logger.info("Generation request aborted")
            return None
        return request.result()

    @staticmethod
    def parse(kind: ArtifactKind, raw: str):
        """
        Decode and validate a model answer.

        Raises:
            ValueError: not JSON, not an object, or schema mismatch
        """
        data = json.loads(strip_code_fences(raw))
        if not isinstance(data, dict):
            raise ValueError("response is not a JSON object")
        return target_model(kind).model_validate(normalize_payload(kind, data))

    @staticmethod
    async def _wait_or_abort(delay: float, abort: Optional[asyncio.Event]) -> bool:
        """Sleep ``delay`` seconds; True when the abort signal fired first."""
        if abort is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(abort.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
