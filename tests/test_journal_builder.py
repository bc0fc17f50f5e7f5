"""
Tests for journal entry construction and the balance checks.
"""
from decimal import Decimal

import pytest

from ledgerpost.models.journal_entries import JournalEntryLineRecord
from ledgerpost.models.money import to_money
from ledgerpost.services.errors import ErrorCode, UnbalancedEntryError
from ledgerpost.services.journal_builder import JournalEntryBuilder


def _builder():
    return JournalEntryBuilder("Test entry", "2024-01-01", "tester", reference="REF-1")


class TestJournalEntryBuilder:

    def test_balanced_entry(self):
        draft = _builder().debit("ar", 100).credit("rev", 60).credit("rev", 40).build()

        assert draft.total_debit == Decimal("100.00")
        assert draft.total_credit == Decimal("100.00")
        assert draft.reference == "REF-1"
        assert draft.status == "Posted"
        assert [line.account_id for line in draft.lines] == ["ar", "rev", "rev"]

    def test_unbalanced_entry(self):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            _builder().debit("ar", 100).credit("rev", 99.98).build()

        assert exc_info.value.code == ErrorCode.UNBALANCED_ENTRY
        assert exc_info.value.context["total_debit"] == "100.00"

    def test_sub_cent_difference_tolerated(self):
        draft = _builder().debit("ar", Decimal("100.004")).credit("rev", Decimal("99.996")).build()

        assert draft.total_debit == draft.total_credit

    def test_empty_entry(self):
        with pytest.raises(UnbalancedEntryError):
            _builder().build()

    def test_two_sided_line(self):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            _builder().add_line("ar", debit=10, credit=10).build()

        assert "exactly one of debit or credit" in str(exc_info.value)

    def test_zero_line(self):
        with pytest.raises(UnbalancedEntryError):
            _builder().add_line("ar").debit("ar", 5).credit("rev", 5).build()

    def test_negative_amount(self):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            _builder().debit("ar", -10).credit("rev", -10).build()

        assert "negative" in str(exc_info.value)

    def test_line_without_account(self):
        with pytest.raises(UnbalancedEntryError):
            _builder().debit("", 10).credit("rev", 10).build()

    def test_dimensions_kept(self):
        draft = _builder().debit("ar", 10, project_id="p1").credit("rev", 10, class_id="c1").build()

        assert draft.lines[0].project_id == "p1"
        assert draft.lines[1].class_id == "c1"


class TestReversal:

    def test_mirror_of_original(self):
        original = [
            JournalEntryLineRecord.model_validate(
                {"AccountId": "A", "Debit": 100, "Credit": 0, "Description": "AR", "ProjectId": "p1"}
            ),
            JournalEntryLineRecord.model_validate({"AccountId": "B", "Debit": 0, "Credit": 100}),
        ]

        draft = JournalEntryBuilder.reversal_of(original, "VOID: Invoice 1", "2024-02-01", "tester").build()

        assert [(line.account_id, line.debit, line.credit) for line in draft.lines] == [
            ("A", Decimal("0.00"), Decimal("100.00")),
            ("B", Decimal("100.00"), Decimal("0.00")),
        ]
        assert draft.lines[0].description == "VOID: AR"
        assert draft.lines[0].project_id == "p1"


class TestMoney:

    def test_rounds_half_up(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(None) == Decimal("0.00")

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_money("abc")
        with pytest.raises(ValueError):
            to_money("NaN")
