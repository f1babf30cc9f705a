"""Встроенные данные: каталог тестов."""
