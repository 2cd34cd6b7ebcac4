"""Каталог форматов фото (YAML)."""
