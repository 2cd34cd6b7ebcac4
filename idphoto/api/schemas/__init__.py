"""API схемы запросов и ответов."""
