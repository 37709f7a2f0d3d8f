"""
Отправка длинных ответов модели.

Лимит Telegram - 4096 символов на сообщение; режем с запасом
по границам строк. Ответы модели размечены Markdown, который Telegram
принимает не всегда, поэтому при ошибке разбора отправляем простой текст.
"""

import logging
from typing import List, Optional

from aiogram.exceptions import TelegramBadRequest
from aiogram.types import Message

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 4000


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """
    Разбивает текст на части не длиннее limit.

    Режет по переводам строк; строки длиннее limit режутся жёстко.
    """
    if len(text) <= limit:
        return [text]

    chunks = []
    current = ''

    for line in text.split('\n'):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ''
            chunks.append(line[:limit])
            line = line[limit:]

        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current:
        chunks.append(current)

    return chunks


async def answer_markdown(message: Message, text: str, reply_markup=None) -> Optional[Message]:
    """Ответ с Markdown; при ошибке разметки - простым текстом."""
    try:
        return await message.answer(
            text,
            parse_mode="Markdown",
            reply_markup=reply_markup,
            disable_web_page_preview=True
        )
    except TelegramBadRequest as e:
        logger.debug(f"Markdown не принят, отправляем текстом: {e}")
        return await message.answer(text, reply_markup=reply_markup, disable_web_page_preview=True)


async def send_long(message: Message, text: str) -> None:
    """Отправка длинного ответа частями."""
    for chunk in split_message(text or '…'):
        await answer_markdown(message, chunk)
