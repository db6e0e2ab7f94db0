"""Portal scrapers module."""

from grade_notifier.scrapers.grades import ExtractionFailed, GradeScraper, extract_table

__all__ = [
    "ExtractionFailed",
    "GradeScraper",
    "extract_table",
]
