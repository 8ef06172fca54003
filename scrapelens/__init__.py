"""Scraped-record ingestion, AI analysis and dashboard backend."""

__version__ = "1.0.0"
