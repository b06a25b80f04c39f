"""Static topic catalog."""

from .topics import DEFAULT_CATALOG, GITHUB_SETUP, TopicCatalog

__all__ = ["DEFAULT_CATALOG", "GITHUB_SETUP", "TopicCatalog"]
