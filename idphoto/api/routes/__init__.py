"""API роуты."""
