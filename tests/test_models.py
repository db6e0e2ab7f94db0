"""Tests for the record layout accessors and run result."""

from grade_notifier.models import RecordLayout, RunResult, RunState


class TestRecordLayout:
    """Tests for identity/status lookups."""

    def test_default_portal_columns(self):
        """Test the portal layout: subject at 2, grade at 7."""
        layout = RecordLayout()
        record = ["1", "2024-1", "Algebra", "MATH101", "3", "01", "Kim", "A+"]

        assert layout.identity_of(record) == "Algebra"
        assert layout.status_of(record) == "A+"

    def test_custom_columns(self):
        layout = RecordLayout(identity_column=1, status_column=2)

        assert layout.identity_of(["101", "Algebra", "B"]) == "Algebra"
        assert layout.status_of(["101", "Algebra", "B"]) == "B"

    def test_short_row(self):
        """Test that a row missing the columns yields None instead of failing."""
        layout = RecordLayout()

        assert layout.identity_of(["only", "two"]) is None
        assert layout.status_of([]) is None


class TestRunResult:
    """Tests for run result helpers."""

    def test_final_state_and_failed(self):
        result = RunResult(states=[RunState.IDLE, RunState.FAILED, RunState.CLOSED])

        assert result.final_state == RunState.CLOSED
        assert result.failed
        assert result.reached(RunState.IDLE)
        assert not result.reached(RunState.NOTIFIED)

    def test_empty_result(self):
        result = RunResult()

        assert result.final_state is None
        assert not result.failed
        assert result.changes == []
