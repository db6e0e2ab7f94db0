"""
Grade Notifier

Logs into the student portal, scrapes the grade report table, detects
rows whose grade changed since the last run and sends an SMS listing them.
"""

__version__ = "1.0.0"
