"""
Base scraper class with shared utilities.

Provides common functionality for portal scrapers.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from grade_notifier.auth.portal_session import PortalSession
from grade_notifier.config import Settings

logger = logging.getLogger(__name__)


class BaseScraper(ABC):
    """
    Base class for portal scrapers.

    Holds the authenticated session and settings, and provides text cleanup.
    """

    def __init__(self, session: PortalSession, settings: Optional[Settings] = None):
        """
        Initialize scraper with authenticated session.

        Args:
            session: Authenticated portal session
            settings: Application settings, defaults to the session's
        """
        self.session = session
        self.settings = settings or session.settings

    @abstractmethod
    def scrape(self, *args, **kwargs) -> Any:
        """Scrape data - implemented by subclasses."""
        pass

    @staticmethod
    def clean_text(text: Optional[str]) -> str:
        """
        Trim surrounding whitespace, including non-breaking spaces.

        Whitespace inside the text is left alone.

        Args:
            text: Text to clean

        Returns:
            str: Cleaned text
        """
        if not text:
            return ""
        return text.strip()
