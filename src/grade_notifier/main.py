"""
Main orchestrator for Grade Notifier.

Coordinates one monitoring run:
1. Launch the browser
2. Log into the portal
3. Scrape the grade report table
4. Compare it with the stored snapshot
5. If grades changed, store the new table and send an SMS
6. Close the browser, whatever happened
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from grade_notifier.auth import AuthenticationFailed, PortalSession
from grade_notifier.changes import diff_tables
from grade_notifier.config import ConfigurationError, Settings, get_settings, setup_logging
from grade_notifier.db import PersistenceFailed, SnapshotStore
from grade_notifier.models import FailureReason, RecordLayout, RunResult, RunState
from grade_notifier.notify import DeliveryFailed, SmsNotifier
from grade_notifier.scrapers import ExtractionFailed, GradeScraper

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Settings], PortalSession]


class GradeMonitor:
    """
    Main orchestrator for grade monitoring.

    Runs the pipeline once per call. Every error raised inside a run is
    caught here, logged and recorded in the RunResult, and the browser is
    closed on every path. The snapshot is saved before the SMS goes out;
    if saving fails no SMS is sent.

    Overlapping runs are not coordinated: two runs started at the same
    time read and write the same snapshot file.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: Optional[SessionFactory] = None,
        store: Optional[SnapshotStore] = None,
        notifier: Optional[SmsNotifier] = None,
    ):
        """
        Initialize the monitor with all components.

        Args:
            settings: Validated application settings
            session_factory: Builds the portal session, defaults to PortalSession
            store: Snapshot store, defaults to the configured snapshot path
            notifier: SMS notifier, defaults to Twilio with the configured account
        """
        self.settings = settings
        self.session_factory = session_factory or PortalSession
        self.store = store or SnapshotStore(settings.snapshot_path)
        self.notifier = notifier or SmsNotifier(settings)
        self.layout = RecordLayout.from_settings(settings)

    def _enter(self, result: RunResult, state: RunState) -> None:
        result.states.append(state)
        logger.debug(f"Run state: {state.value}")

    def _fail(
        self,
        result: RunResult,
        reason: FailureReason,
        error: Exception,
    ) -> None:
        result.failure = reason
        result.error = str(error)
        self._enter(result, RunState.FAILED)

    def run(self) -> RunResult:
        """
        Execute one monitoring run.

        Returns:
            RunResult: States visited, changed rows and delivery outcome
        """
        logger.info("=" * 50)
        logger.info("Starting Grade Notifier")
        logger.info("=" * 50)

        result = RunResult(states=[RunState.IDLE])
        session = self.session_factory(self.settings)

        try:
            session.open()
            self._enter(result, RunState.SESSION_OPEN)

            session.authenticate(self.settings.school_id, self.settings.school_pw)
            self._enter(result, RunState.AUTHENTICATED)

            scraped = GradeScraper(session, self.settings).scrape()
            self._enter(result, RunState.SCRAPED)

            stored = self.store.load()
            changes = diff_tables(stored, scraped, self.layout)
            result.changes = changes
            self._enter(result, RunState.COMPARED)

            if changes:
                logger.info(f"{len(changes)} grade(s) changed")
                self.store.save(scraped)
                result.delivery_id = self.notifier.notify(changes)
                self._enter(result, RunState.NOTIFIED)
            else:
                logger.info("No new grades detected.")
                self._enter(result, RunState.NO_CHANGE)

        except AuthenticationFailed as e:
            logger.error(f"Login failed - check SCHOOL_ID / SCHOOL_PW: {e}")
            self._fail(result, FailureReason.AUTHENTICATION, e)
        except ExtractionFailed as e:
            logger.error(f"Could not read the grade table: {e}")
            self._fail(result, FailureReason.EXTRACTION, e)
        except PersistenceFailed as e:
            logger.error(f"Could not save the grade snapshot, SMS not sent: {e}")
            self._fail(result, FailureReason.PERSISTENCE, e)
        except DeliveryFailed as e:
            logger.error(f"Snapshot saved but SMS delivery failed: {e}")
            self._fail(result, FailureReason.DELIVERY, e)
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            self._fail(result, FailureReason.UNEXPECTED, e)
        finally:
            session.close()
            self._enter(result, RunState.CLOSED)

        self._log_summary(result)
        return result

    def seed(self) -> bool:
        """
        Store the current grade table as the baseline, without notifying.

        A run only reports subjects already present in the snapshot, so a
        fresh install needs a baseline before it can detect anything.

        Returns:
            bool: True if the baseline was stored
        """
        logger.info("Seeding grade snapshot")

        try:
            with self.session_factory(self.settings) as session:
                session.authenticate(self.settings.school_id, self.settings.school_pw)
                scraped = GradeScraper(session, self.settings).scrape()
            self.store.save(scraped)
        except AuthenticationFailed as e:
            logger.error(f"Login failed - check SCHOOL_ID / SCHOOL_PW: {e}")
            return False
        except Exception as e:
            logger.error(f"Seeding failed: {e}", exc_info=True)
            return False

        logger.info(f"Baseline stored with {len(scraped)} rows")
        return True

    def _log_summary(self, result: RunResult) -> None:
        """Log execution summary."""
        logger.info("=" * 50)
        logger.info("Run Complete - Summary")
        logger.info("=" * 50)
        logger.info(f"States:         {' -> '.join(s.value for s in result.states)}")
        logger.info(f"Changed grades: {len(result.changes)}")
        logger.info(f"SMS id:         {result.delivery_id or '-'}")
        if result.failed:
            logger.info(f"Failure:        {result.failure.value} ({result.error})")
        logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grade-notifier",
        description="Check the portal grade report and text changed grades",
    )
    parser.add_argument(
        "--seed-snapshot",
        action="store_true",
        help="Store the current grade table as the baseline without sending an SMS",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the Grade Notifier.

    Returns:
        int: Exit code. 1 only for configuration errors; a run that fails
        inside the pipeline still exits 0 because the failure was reported.
    """
    args = build_parser().parse_args(argv)

    try:
        # Validate configuration before anything touches the network
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error:\n{e}", file=sys.stderr)
        print("Please check your environment variables.", file=sys.stderr)
        return 1

    setup_logging(settings)

    monitor = GradeMonitor(settings)
    if args.seed_snapshot:
        return 0 if monitor.seed() else 1

    monitor.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
