"""
Change detection between the stored grade table and a fresh scrape.

Only rows whose subject already exists in the stored table can be
reported. A subject seen for the first time is not a change.
"""

import logging
from typing import Dict, Optional

from grade_notifier.models import GradeRecord, RecordLayout, Table

logger = logging.getLogger(__name__)


def index_by_identity(table: Table, layout: RecordLayout) -> Dict[str, GradeRecord]:
    """
    Map each subject to the first row that carries it.

    Later duplicates are ignored so lookups match a scan that stops at the
    first hit.
    """
    index: Dict[str, GradeRecord] = {}
    for record in table:
        identity = layout.identity_of(record)
        if identity is not None and identity not in index:
            index[identity] = record
    return index


def diff_tables(
    stored: Table,
    scraped: Table,
    layout: Optional[RecordLayout] = None,
) -> Table:
    """
    Find scraped rows whose grade differs from the stored row of the same subject.

    Args:
        stored: Table from the last snapshot
        scraped: Table just extracted from the portal
        layout: Column positions, defaults to the portal's layout

    Returns:
        Table: Changed rows, in scraped order
    """
    layout = layout or RecordLayout()
    previous = index_by_identity(stored, layout)

    changed: Table = []
    for record in scraped:
        identity = layout.identity_of(record)
        if identity is None:
            continue
        old = previous.get(identity)
        if old is not None and layout.status_of(old) != layout.status_of(record):
            logger.debug(
                f"{identity}: {layout.status_of(old)!r} -> {layout.status_of(record)!r}"
            )
            changed.append(record)

    return changed
