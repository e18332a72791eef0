"""
Content generation collaborator (OpenAI-compatible chat completions)
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from plenario.core.timeouts import TIMEOUTS
from plenario.models.domain import EducationalArticle
from plenario.services.cache_service import CacheService

logger = logging.getLogger(__name__)

ARTICLES_CACHE_KEY = "educational_articles"

ARTICLES_PROMPT = """Atue como um professor de Direito Constitucional.
Gere 3 artigos educativos curtos e diretos sobre política brasileira.

Regras:
- Cada texto deve ter no máximo 60 palavras.
- Linguagem simples.
- Responda apenas com JSON no formato {"articles": [...]}.

Temas sugeridos: Orçamento Público, Tramitação de Leis, STF, Papel do Deputado."""

ARTICLE_SCHEMA = {
    "type": "object",
    "properties": {
        "articles": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "text": {"type": "string"},
                    "topic": {"type": "string"},
                    "legislation": {"type": "string"},
                    "impact": {"type": "string"},
                },
                "required": ["title", "text", "topic"],
            },
        }
    },
    "required": ["articles"],
}

STATIC_ARTICLES = [
    EducationalArticle(
        title="O Orçamento Público",
        text=(
            "O Orçamento Público estima as receitas e fixa as despesas do governo para um ano. "
            "É a lei que define onde seu dinheiro será gasto: saúde, educação, segurança. "
            "Sem ele, o governo não pode funcionar."
        ),
        topic="Orçamento",
        legislation="Art. 165 da Constituição Federal",
        impact="Define a qualidade dos serviços públicos que você usa.",
    ),
    EducationalArticle(
        title="PEC vs Projeto de Lei",
        text=(
            "PEC (Proposta de Emenda à Constituição) altera a Constituição e exige 3/5 dos votos "
            "em dois turnos. PL (Projeto de Lei) cria leis comuns e exige maioria simples."
        ),
        topic="Legislação",
        legislation="Art. 59 a 69 da CF/88",
        impact="PECs geralmente trazem mudanças profundas e duradouras.",
    ),
    EducationalArticle(
        title="O Papel do STF",
        text=(
            "O Supremo Tribunal Federal é o guardião da Constituição. Ele não cria leis, mas julga "
            "se as leis do Congresso e os atos do Presidente respeitam a Constituição."
        ),
        topic="Poder Judiciário",
        legislation="Art. 101 da CF/88",
        impact="Garante que seus direitos fundamentais não sejam violados.",
    ),
]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class ContentGenerationError(Exception):
    pass


class ContentService:
    """Prompt in, text or JSON out. Callers always get static content on failure."""

    def __init__(self, settings, cache: Optional[CacheService] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self.cache = cache
        self.client = client
        if self.client is None and settings.openai_api_key:
            self.client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                timeout=TIMEOUTS.content,
            )

    @property
    def available(self) -> bool:
        return self.client is not None

    async def close(self):
        if self.client is not None:
            await self.client.close()

    async def generate(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> Any:
        """Return generated text, or parsed JSON when a schema is given"""
        if not self.available:
            raise ContentGenerationError("No content generation client configured")

        messages = [{"role": "user", "content": prompt}]
        kwargs: Dict[str, Any] = {}
        if schema is not None:
            messages.insert(0, {
                "role": "system",
                "content": f"Respond with JSON matching this schema: {json.dumps(schema, ensure_ascii=False)}",
            })
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(
                model=self.settings.openai_model,
                messages=messages,
                **kwargs,
            )
        except OpenAIError as e:
            raise ContentGenerationError(f"Content generation failed: {e}") from e

        text = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not text:
            raise ContentGenerationError("Empty completion")
        if schema is None:
            return text

        try:
            return json.loads(_FENCE_RE.sub("", text))
        except ValueError as e:
            raise ContentGenerationError(f"Completion is not valid JSON: {e}") from e

    async def educational_articles(self) -> List[EducationalArticle]:
        if not self.available:
            return list(STATIC_ARTICLES)

        if self.cache is not None:
            data = await self.cache.with_cache(ARTICLES_CACHE_KEY, self._generate_articles, self.settings.ttl_content)
        else:
            try:
                data = await self._generate_articles()
            except ContentGenerationError as e:
                logger.warning(f"Educational content unavailable: {e}")
                data = None

        if not data:
            return list(STATIC_ARTICLES)
        return [EducationalArticle.model_validate(a) for a in data]

    async def _generate_articles(self) -> List[Dict[str, Any]]:
        payload = await self.generate(ARTICLES_PROMPT, ARTICLE_SCHEMA)
        items = payload.get("articles") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise ContentGenerationError("Completion has no article list")

        articles = []
        for item in items:
            try:
                articles.append(EducationalArticle.model_validate(item).model_dump())
            except ValidationError as e:
                logger.debug(f"Skipping malformed article: {e}")
        if not articles:
            raise ContentGenerationError("Completion has no valid articles")
        return articles
