"""
Message formatters for SMS notifications.

Formats changed grade rows into a short text message.
"""

import logging
from typing import Optional

from grade_notifier.models import RecordLayout, Table

logger = logging.getLogger(__name__)


class MessageFormatter:
    """
    Formats notification content for SMS.

    The message names every subject whose grade changed, in table order.
    Messages longer than MAX_LENGTH are cut at the last whole subject that
    fits and end with "..."; a warning names how many subjects were left out.
    """

    # Twilio rejects message bodies longer than this
    MAX_LENGTH = 1600

    def __init__(self, layout: Optional[RecordLayout] = None, prefix: str = "[Grade update]"):
        self.layout = layout or RecordLayout()
        self.prefix = prefix

    def format_changes(self, changes: Table) -> str:
        """
        Format changed rows for an SMS.

        Args:
            changes: Rows whose grade changed

        Returns:
            str: Message body, e.g. "[Grade update] Algebra, Physics"
        """
        subjects = [self.layout.identity_of(record) or "" for record in changes]
        message = f"{self.prefix} {', '.join(subjects)}"
        if len(message) <= self.MAX_LENGTH:
            return message

        kept = []
        for subject in subjects:
            if len(f"{self.prefix} {', '.join(kept + [subject])}...") > self.MAX_LENGTH:
                break
            kept.append(subject)

        logger.warning(
            f"SMS limited to {self.MAX_LENGTH} characters: "
            f"{len(subjects) - len(kept)} of {len(subjects)} subjects left out"
        )
        return f"{self.prefix} {', '.join(kept)}..."
