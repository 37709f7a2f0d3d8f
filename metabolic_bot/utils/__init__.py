"""Вспомогательные функции бота."""
