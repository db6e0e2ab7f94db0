"""SMS notification module for Grade Notifier."""

from grade_notifier.notify.formatters import MessageFormatter
from grade_notifier.notify.sms import DeliveryFailed, SmsNotifier

__all__ = ["DeliveryFailed", "MessageFormatter", "SmsNotifier"]
