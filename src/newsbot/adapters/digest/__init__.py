"""Digest formatting."""

from newsbot.adapters.digest.formatter import digest_title, format_digest

__all__ = ["digest_title", "format_digest"]
