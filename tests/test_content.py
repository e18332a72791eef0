"""
Tests for the content generation collaborator.
"""

import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from plenario.services.content import STATIC_ARTICLES, ContentGenerationError, ContentService


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def fake_client(completions: FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


ARTICLES = {"articles": [
    {"title": "Tramitação", "text": "Como uma lei nasce.", "topic": "Legislação"},
    {"title": "Sem texto", "topic": "Inválido"},
]}


class TestGenerate:
    """Prompt in, text or parsed JSON out."""

    async def test_plain_text(self, settings):
        completions = FakeCompletions(content="  Olá  ")
        service = ContentService(settings, client=fake_client(completions))

        assert await service.generate("diga olá") == "Olá"
        assert "response_format" not in completions.calls[0]

    async def test_schema_requests_json_and_strips_fences(self, settings):
        completions = FakeCompletions(content="```json\n{\"ok\": true}\n```")
        service = ContentService(settings, client=fake_client(completions))

        assert await service.generate("json", schema={"type": "object"}) == {"ok": True}
        assert completions.calls[0]["response_format"] == {"type": "json_object"}
        assert completions.calls[0]["messages"][0]["role"] == "system"

    async def test_client_error_is_wrapped(self, settings):
        service = ContentService(settings, client=fake_client(FakeCompletions(error=OpenAIError("quota"))))

        with pytest.raises(ContentGenerationError):
            await service.generate("x")

    async def test_invalid_json_raises(self, settings):
        service = ContentService(settings, client=fake_client(FakeCompletions(content="not json")))

        with pytest.raises(ContentGenerationError):
            await service.generate("x", schema={})

    async def test_unconfigured_service_raises(self, settings):
        service = ContentService(settings)

        assert service.available is False
        with pytest.raises(ContentGenerationError):
            await service.generate("x")


class TestEducationalArticles:
    """Static seed content whenever generation is unavailable."""

    async def test_static_articles_without_client(self, settings, cache):
        service = ContentService(settings, cache=cache)

        assert await service.educational_articles() == STATIC_ARTICLES

    async def test_generated_articles_are_validated_and_cached(self, settings, cache):
        completions = FakeCompletions(content=json.dumps(ARTICLES))
        service = ContentService(settings, cache=cache, client=fake_client(completions))

        first = await service.educational_articles()
        second = await service.educational_articles()

        assert [a.title for a in first] == ["Tramitação"]
        assert second == first
        assert len(completions.calls) == 1

    async def test_generation_failure_falls_back_to_static(self, settings, cache):
        service = ContentService(settings, cache=cache, client=fake_client(FakeCompletions(error=OpenAIError("down"))))

        assert await service.educational_articles() == STATIC_ARTICLES
