# ABOUTME: Tests for stack status classification
# ABOUTME: Covers every known status, absence of a stack and unknown provider strings

import pytest

from cfn_stack_delete.stack_status import NOT_FOUND, StackStatus, StatusCategory, classify


class TestClassify:
    """Raw status strings map to exactly one status and category"""

    @pytest.mark.parametrize(
        "raw,category",
        [
            ("DELETE_COMPLETE", StatusCategory.TERMINAL_SUCCESS),
            ("DELETE_FAILED", StatusCategory.TERMINAL_FAILURE),
            ("CREATE_FAILED", StatusCategory.TERMINAL_FAILURE),
            ("UPDATE_FAILED", StatusCategory.TERMINAL_FAILURE),
            ("ROLLBACK_FAILED", StatusCategory.TERMINAL_FAILURE),
            ("DELETE_IN_PROGRESS", StatusCategory.IN_PROGRESS),
            ("CREATE_IN_PROGRESS", StatusCategory.IN_PROGRESS),
            ("UPDATE_IN_PROGRESS", StatusCategory.IN_PROGRESS),
            ("ROLLBACK_IN_PROGRESS", StatusCategory.IN_PROGRESS),
            ("CREATE_COMPLETE", StatusCategory.STABLE),
            ("UPDATE_COMPLETE", StatusCategory.STABLE),
            ("ROLLBACK_COMPLETE", StatusCategory.STABLE),
        ],
    )
    def test_known_statuses(self, raw, category):
        """Test each known status keeps its raw value and category"""
        observed = classify(raw)
        assert observed.status is StackStatus(raw)
        assert observed.raw == raw
        assert observed.category is category

    def test_absent_stack_is_not_found(self):
        """Test a missing stack classifies as STACK_NOT_FOUND, a terminal success"""
        observed = classify(None)
        assert observed is NOT_FOUND
        assert observed.is_terminal
        assert observed.is_success

    def test_unknown_status_keeps_raw_value(self):
        """Test unrecognised statuses become UNKNOWN without raising"""
        observed = classify("IMPORT_ROLLBACK_COMPLETE")
        assert observed.status is StackStatus.UNKNOWN
        assert observed.raw == "IMPORT_ROLLBACK_COMPLETE"
        assert str(observed) == "IMPORT_ROLLBACK_COMPLETE"
        assert not observed.is_terminal

    def test_whitespace_is_ignored(self):
        assert classify("  DELETE_COMPLETE\n").status is StackStatus.DELETE_COMPLETE

    def test_reason_is_carried(self):
        observed = classify("DELETE_FAILED", "bucket not empty")
        assert observed.reason == "bucket not empty"
        assert observed.is_failure

    def test_stable_states_are_not_terminal(self):
        """Test stable states keep monitoring going after a delete request"""
        for raw in ("CREATE_COMPLETE", "UPDATE_COMPLETE", "ROLLBACK_COMPLETE"):
            assert not classify(raw).is_terminal

    def test_classification_is_deterministic(self):
        for status in StackStatus:
            if status is StackStatus.UNKNOWN:
                continue
            assert classify(status.value) == classify(status.value)
