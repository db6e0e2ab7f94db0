"""Persistence module for Grade Notifier - JSON snapshot of the grade table."""

from grade_notifier.db.snapshot_store import PersistenceFailed, SnapshotStore

__all__ = ["PersistenceFailed", "SnapshotStore"]
