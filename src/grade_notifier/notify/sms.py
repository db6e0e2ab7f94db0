"""
Twilio SMS client.

Sends notifications via Twilio's Programmable Messaging REST API.
https://www.twilio.com/docs/messaging/api/message-resource
"""

import logging
from typing import Optional

import requests

from grade_notifier.config import Settings
from grade_notifier.models import RecordLayout, Table
from grade_notifier.notify.formatters import MessageFormatter

logger = logging.getLogger(__name__)

# Twilio REST endpoint for creating messages
TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"


class DeliveryFailed(Exception):
    """Raised when the SMS gateway did not accept the message."""
    pass


class SmsNotifier:
    """
    Twilio client for sending grade change notifications.

    Sends one text message per run to the configured recipient. Failed
    deliveries are not retried.
    """

    def __init__(
        self,
        settings: Settings,
        formatter: Optional[MessageFormatter] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize SMS notifier.

        Args:
            settings: Application settings (Twilio account and phone numbers)
            formatter: Message formatter, defaults to one built from settings
            session: HTTP session, mainly for tests
        """
        self.from_number = settings.twilio_from
        self.to_number = settings.twilio_to
        self.formatter = formatter or MessageFormatter(
            layout=RecordLayout.from_settings(settings),
            prefix=settings.sms_prefix,
        )

        self.api_url = TWILIO_API_URL.format(account_sid=settings.twilio_sid)
        self.session = session or requests.Session()
        self.session.auth = (settings.twilio_sid, settings.twilio_auth)

    def send_message(self, body: str) -> str:
        """
        Send a text message.

        Args:
            body: The message text to send

        Returns:
            str: Twilio message SID

        Raises:
            DeliveryFailed: If the request failed or Twilio rejected it
        """
        payload = {
            "Body": body,
            "From": self.from_number,
            "To": self.to_number,
        }

        try:
            response = self.session.post(self.api_url, data=payload, timeout=30)
        except requests.exceptions.Timeout as e:
            raise DeliveryFailed("Twilio API request timed out") from e
        except requests.exceptions.RequestException as e:
            raise DeliveryFailed(f"Twilio API request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise DeliveryFailed(
                f"Twilio API error: {response.status_code} - {response.text}"
            )

        try:
            message_sid = response.json().get("sid")
        except ValueError as e:
            raise DeliveryFailed("Twilio API returned a non-JSON response") from e

        if not message_sid:
            raise DeliveryFailed("Twilio API response did not include a message SID")

        logger.info(f"SMS sent: {message_sid}")
        return message_sid

    def notify(self, changes: Table) -> Optional[str]:
        """
        Send one SMS listing the changed subjects.

        Args:
            changes: Rows whose grade changed

        Returns:
            str or None: Message SID, or None when there was nothing to send

        Raises:
            DeliveryFailed: If the message could not be delivered
        """
        if not changes:
            return None
        return self.send_message(self.formatter.format_changes(changes))
