"""Medical Diagnosis Bot — пошаговые диагностические тесты в Telegram."""

__version__ = "0.1.0"
