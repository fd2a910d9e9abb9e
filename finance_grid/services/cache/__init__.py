"""Durable cache mirror package."""

from finance_grid.services.cache.mirror import InMemoryCacheMirror, JsonFileCacheMirror

__all__ = ["InMemoryCacheMirror", "JsonFileCacheMirror"]
