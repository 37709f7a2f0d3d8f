"""Telegram-бот Metabolic Center."""
