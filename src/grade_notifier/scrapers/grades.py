"""
Grade report scraper.

Reads the grade report table from the rendered portal page. Each table
row becomes a list of cell strings in on-page order, and the header row
is dropped.
"""

import logging
from typing import Union

from bs4 import BeautifulSoup

from grade_notifier.models import Table
from grade_notifier.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)


class ExtractionFailed(Exception):
    """Raised when the grade table is not where it should be on the page."""
    pass


def extract_table(
    page: Union[BeautifulSoup, str],
    selector: str = "#att_list",
    row_selector: str = "tr",
    cell_selector: str = "td",
) -> Table:
    """
    Turn the grade table on a rendered page into rows of cell text.

    Args:
        page: Parsed page, or its HTML
        selector: CSS selector of the table container
        row_selector: CSS selector of rows within the container
        cell_selector: CSS selector of cells within a row

    Returns:
        Table: Rows in document order, header row excluded

    Raises:
        ExtractionFailed: If the container is missing from the page
    """
    if isinstance(page, str):
        page = BeautifulSoup(page, "lxml")

    container = page.select_one(selector)
    if container is None:
        raise ExtractionFailed(
            f"Grade table {selector!r} not found - the page layout may have changed"
        )

    rows: Table = []
    for row in container.select(row_selector):
        cells = row.select(cell_selector)
        rows.append([BaseScraper.clean_text(cell.get_text()) for cell in cells])

    return rows[1:]


class GradeScraper(BaseScraper):
    """
    Scrapes the grade report page.

    Loads the configured grades URL through the authenticated session and
    extracts the grade table from it.
    """

    def scrape(self) -> Table:
        """
        Load the grade report and extract its rows.

        Returns:
            Table: Grade rows, header excluded

        Raises:
            ExtractionFailed: If the grade table is missing
            PortalSessionError: If the page could not be loaded
        """
        settings = self.settings
        page = self.session.fetch_page(
            settings.portal_grades_url,
            wait_for=settings.grade_table_selector,
        )
        table = extract_table(
            page,
            settings.grade_table_selector,
            settings.grade_row_selector,
            settings.grade_cell_selector,
        )

        logger.info(f"Extracted {len(table)} grade rows")
        for record in table:
            logger.debug(" | ".join(record))
        return table
