"""
Scraping of metrics endpoints.
"""

from .scraper import (
    Scraper,
    ScrapeError,
    ScrapeTimeout,
    ScrapeTooLarge,
    ScrapeUnreachable,
    is_retryable_status,
)

__all__ = [
    "ScrapeError",
    "ScrapeTimeout",
    "ScrapeTooLarge",
    "ScrapeUnreachable",
    "Scraper",
    "is_retryable_status",
]
