"""
Настройка логирования.

JSON-логи для production (парсятся лог-агрегатором платформы),
человекочитаемый формат для локальной разработки.
"""

import logging
import json
import sys
import os
from datetime import datetime
from typing import Optional
from pathlib import Path

# Стандартные атрибуты LogRecord - всё остальное считаем extra-полями
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info', 'taskName'
}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter.

    Output format:
    {"timestamp": "...Z", "level": "INFO", "logger": "metabolic_bot.main",
     "message": "...", "extra": {"user_id": 123}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """2024-11-24 12:34:56 INFO     metabolic_bot.main: Bot started"""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s %(levelname)-8s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[Path] = None
) -> None:
    """
    Настройка логирования для всего приложения.

    Args:
        level: DEBUG, INFO, WARNING, ERROR
        use_json: JSON формат (True для production)
        log_file: Путь к файлу логов (опционально)
    """
    formatter = StructuredFormatter() if use_json else HumanReadableFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Уменьшаем verbosity сторонних библиотек
    logging.getLogger("aiogram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def auto_setup_logging():
    """
    Настройка логирования из переменных окружения.

    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    LOG_FORMAT: json или human (default: human)
    LOG_FILE: путь к файлу логов (опционально)
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_format = os.getenv("LOG_FORMAT", "human")
    log_file_path = os.getenv("LOG_FILE")

    setup_logging(
        level=log_level,
        use_json=log_format.lower() == "json",
        log_file=Path(log_file_path) if log_file_path else None
    )


__all__ = [
    'setup_logging',
    'auto_setup_logging',
    'StructuredFormatter',
    'HumanReadableFormatter',
]
