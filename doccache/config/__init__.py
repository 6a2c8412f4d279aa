"""Configuration module -- exports Settings."""

from doccache.config.settings import Settings

__all__ = ["Settings"]
