"""
Клиент OpenAI для функций бота.

- Retry логика (tenacity) на rate limit, таймауты и обрывы соединения
- Vision-запросы с изображением в base64
- JSON-ответы для оценки блюд
"""

import base64
import logging
from typing import Dict, Any, List, Optional

import openai
from openai import AsyncOpenAI
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from metabolic_center.food import parse_food_estimate
from metabolic_center.prompts import FOOD_ESTIMATE_PROMPT

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"

RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
)

_llm_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(RETRYABLE_ERRORS),
    reraise=True
)


def image_data_url(image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
    """Картинка -> data URL для vision-запроса."""
    encoded = base64.b64encode(image_bytes).decode('ascii')
    return f"data:{mime_type};base64,{encoded}"


class HealthAI:
    """
    Wrapper для OpenAI Chat Completions.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        client: Optional[AsyncOpenAI] = None
    ):
        """
        Args:
            api_key: OpenAI API ключ
            model: Модель (должна поддерживать изображения)
            client: Готовый клиент (для тестов)
        """
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)
        logger.info(f"OpenAI client initialized with model: {model}")

    @_llm_retry
    async def _create(self, messages: List[Dict[str, Any]], max_tokens: int, **kwargs) -> str:
        logger.debug(f"Sending request to OpenAI API (model: {self.model})")

        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=messages,
            **kwargs
        )

        result = response.choices[0].message.content or ''
        logger.debug(f"Received response ({len(result)} characters)")
        return result

    async def complete(self, system_prompt: str, user_text: str, max_tokens: int = 3000) -> str:
        """Одиночный запрос: системный промпт + сообщение пользователя."""
        return await self._create(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text},
            ],
            max_tokens=max_tokens
        )

    async def chat(self, system_prompt: str, history: List[Dict[str, str]], max_tokens: int = 1500) -> str:
        """
        Запрос с историей диалога.

        Args:
            system_prompt: Системный промпт (с контекстом профиля)
            history: Последние сообщения [{'role': ..., 'content': ...}]
        """
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": m["role"], "content": m["content"]} for m in history)
        return await self._create(messages, max_tokens=max_tokens)

    async def analyze_image(
        self,
        system_prompt: str,
        image_bytes: bytes,
        text: str,
        mime_type: str = "image/jpeg",
        max_tokens: int = 4000
    ) -> str:
        """Vision-запрос: фото анализов или медицинского документа."""
        return await self._create(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": [
                    {
                        "type": "image_url",
                        "image_url": {"url": image_data_url(image_bytes, mime_type), "detail": "high"}
                    },
                    {"type": "text", "text": text},
                ]},
            ],
            max_tokens=max_tokens
        )

    async def estimate_food(self, meal_text: str) -> Optional[Dict[str, Any]]:
        """
        Оценка калорий и БЖУ блюда по описанию.

        Returns:
            Словарь оценки или None, если это не еда
        """
        raw = await self._create(
            [
                {"role": "system", "content": FOOD_ESTIMATE_PROMPT},
                {"role": "user", "content": meal_text},
            ],
            max_tokens=300,
            response_format={"type": "json_object"},
            temperature=0.2
        )
        return parse_food_estimate(raw, fallback_description=meal_text[:60])
