"""Soundtrack downloader - fetch game soundtrack albums and fix their tags."""

__version__ = "0.3.0"
