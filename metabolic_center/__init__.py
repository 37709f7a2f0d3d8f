"""
Metabolic Center: доменный слой бота.

Промпты, клиент LLM, правила freemium-квот, детокс-программа,
реферальные коды и мониторинг. Ничего не знает о Telegram.
"""

__version__ = "1.0.0"
