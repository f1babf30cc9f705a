"""Конфигурация и общие исключения."""
