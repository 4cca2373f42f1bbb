"""Unit tests for GenerationClient retry, classification and parsing (OpenAI replaced by a fake)."""

import asyncio
import json
from types import SimpleNamespace
from typing import List, Union

import httpx
import openai
import pytest

from conftest import make_plan

from src.ai.fallback_generator import FallbackGenerator
from src.ai.generation_client import GenerationClient, classify_status, strip_code_fences
from src.ai.prompts import build_prompt_context
from src.ai.types import ArtifactKind, GenerationErrorKind, GenerationStatus
from src.config import Settings
from src.pedagogy.plan import ShortVersion

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(code: int) -> openai.APIStatusError:
    return openai.APIStatusError(
        f"status {code}",
        response=httpx.Response(code, request=_REQUEST),
        body=None,
    )


def _completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    """Replays queued answers; an exception in the queue is raised instead."""

    def __init__(self, answers: List[Union[str, Exception]]):
        self.answers = list(answers)
        self.calls: List[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return _completion(answer)


class FakeOpenAI:
    def __init__(self, answers):
        self.chat = SimpleNamespace(completions=FakeCompletions(answers))

    @property
    def calls(self):
        return self.chat.completions.calls


def _settings(**overrides) -> Settings:
    values = dict(openai_api_key="sk-test", generation_max_retries=2, generation_backoff_base_seconds=0.0)
    values.update(overrides)
    return Settings(**values)


def _short_json() -> str:
    return FallbackGenerator.short_version(make_plan()).model_dump_json()


def _client(answers, **settings) -> GenerationClient:
    return GenerationClient(settings=_settings(**settings), client=FakeOpenAI(answers))


def _short_context():
    return build_prompt_context(ArtifactKind.SHORT, make_plan())


class TestHelpers:

    def test_classify_status(self):
        assert classify_status(429) == GenerationErrorKind.RATE_LIMITED
        assert classify_status(408) == GenerationErrorKind.TIMEOUT
        assert classify_status(504) == GenerationErrorKind.TIMEOUT
        assert classify_status(500) == GenerationErrorKind.GENERIC

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_parse_fills_missing_ids(self):
        raw = json.dumps({"phases": [{"name": "Einstieg", "duration_minutes": 10}]})
        detail = GenerationClient.parse(ArtifactKind.DETAIL, raw)
        assert detail.phases[0].id == "p-1"

    def test_parse_rejects_non_objects(self):
        with pytest.raises(ValueError):
            GenerationClient.parse(ArtifactKind.SHORT, "[1, 2]")
        with pytest.raises(ValueError):
            GenerationClient.parse(ArtifactKind.SHORT, '{"title": "nur ein Titel"}')


class TestGenerate:

    @pytest.mark.asyncio
    async def test_success_first_attempt(self):
        client = _client([_short_json()])
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.status == GenerationStatus.SUCCEEDED
        assert isinstance(result.artifact, ShortVersion)
        assert result.attempts == 1
        assert result.model_used == "gpt-4o"
        call = client.client.calls[0]
        assert call["response_format"] == {"type": "json_object"}
        assert call["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        client = _client([_status_error(429), _status_error(503), _short_json()])
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.status == GenerationStatus.SUCCEEDED
        assert result.attempts == 3

    @pytest.mark.asyncio
    async def test_rate_limit_exhausts_retries(self):
        client = _client([_status_error(429)] * 3)
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.status == GenerationStatus.FAILED
        assert result.error_kind == GenerationErrorKind.RATE_LIMITED
        assert result.attempts == 3

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        client = _client([_status_error(400)])
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.error_kind == GenerationErrorKind.GENERIC
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_timeout_is_classified(self):
        client = _client([openai.APITimeoutError(request=_REQUEST)], generation_max_retries=0)
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.error_kind == GenerationErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_error_is_generic(self):
        client = _client([openai.APIConnectionError(request=_REQUEST)], generation_max_retries=0)
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.error_kind == GenerationErrorKind.GENERIC

    @pytest.mark.asyncio
    async def test_invalid_answer_fails_without_retry(self):
        client = _client(["kein json", _short_json()])
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.status == GenerationStatus.FAILED
        assert result.attempts == 1
        assert len(client.client.calls) == 1

    @pytest.mark.asyncio
    async def test_fenced_answer_is_accepted(self):
        client = _client([f"```json\n{_short_json()}\n```"])
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.status == GenerationStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_unconfigured_client_fails_fast(self):
        client = GenerationClient(settings=_settings(openai_api_key=""))
        result = await client.generate(ArtifactKind.SHORT, _short_context())
        assert result.status == GenerationStatus.FAILED
        assert result.attempts == 0

    @pytest.mark.asyncio
    async def test_abort_before_first_attempt(self):
        client = _client([_short_json()])
        abort = asyncio.Event()
        abort.set()
        result = await client.generate(ArtifactKind.SHORT, _short_context(), abort)
        assert result.status == GenerationStatus.CANCELLED
        assert client.client.calls == []

    @pytest.mark.asyncio
    async def test_abort_during_backoff(self):
        abort = asyncio.Event()

        class AbortingCompletions(FakeCompletions):
            async def create(self, **kwargs):
                abort.set()
                return await super().create(**kwargs)

        fake = FakeOpenAI([])
        fake.chat.completions = AbortingCompletions([_status_error(503), _short_json()])
        client = GenerationClient(settings=_settings(generation_backoff_base_seconds=30.0), client=fake)

        result = await asyncio.wait_for(client.generate(ArtifactKind.SHORT, _short_context(), abort), timeout=5)
        assert result.status == GenerationStatus.CANCELLED
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_abort_during_request(self):
        request_started = asyncio.Event()

        class SlowCompletions(FakeCompletions):
            async def create(self, **kwargs):
                request_started.set()
                await asyncio.sleep(5)
                return await super().create(**kwargs)

        fake = FakeOpenAI([])
        fake.chat.completions = SlowCompletions([_short_json()])
        client = GenerationClient(settings=_settings(), client=fake)
        abort = asyncio.Event()

        task = asyncio.ensure_future(client.generate(ArtifactKind.SHORT, _short_context(), abort))
        await request_started.wait()
        abort.set()
        result = await asyncio.wait_for(task, timeout=2)

        assert result.status == GenerationStatus.CANCELLED
        assert result.attempts == 1
        assert fake.chat.completions.answers == [_short_json()]

    @pytest.mark.asyncio
    async def test_answer_after_abort_is_discarded(self):
        abort = asyncio.Event()

        class LateCompletions(FakeCompletions):
            async def create(self, **kwargs):
                abort.set()
                return await super().create(**kwargs)

        fake = FakeOpenAI([])
        fake.chat.completions = LateCompletions([_short_json()])
        client = GenerationClient(settings=_settings(), client=fake)

        result = await client.generate(ArtifactKind.SHORT, _short_context(), abort)
        assert result.status == GenerationStatus.CANCELLED
        assert result.artifact is None
