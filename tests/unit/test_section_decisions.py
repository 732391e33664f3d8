"""Unit tests for the section tracker helpers in verification_crud."""

import pytest

from permit_service.app.crud.verification_crud import (
    aggregate_decision,
    default_sections,
    derive_decision_reason,
    incomplete_sections,
)
from permit_service.app.enum.verification_enum import VerificationDecision


def sections(identity="INCOMPLETE", address="INCOMPLETE", business="INCOMPLETE", notes=None):
    notes = notes or {}
    return {
        "identity": {"status": identity, "notes": notes.get("identity")},
        "address": {"status": address, "notes": notes.get("address")},
        "businessAffiliation": {"status": business, "notes": notes.get("business")},
    }


class TestAggregateDecision:
    """Precedence: REJECTED > NEEDS_INFO > VERIFIED (all three) > PENDING."""

    def test_new_attempt_is_pending(self) -> None:
        assert aggregate_decision(default_sections()) == VerificationDecision.PENDING

    def test_all_verified(self) -> None:
        assert aggregate_decision(sections("VERIFIED", "VERIFIED", "VERIFIED")) == VerificationDecision.VERIFIED

    def test_two_verified_is_still_pending(self) -> None:
        assert aggregate_decision(sections("VERIFIED", "VERIFIED", "COMPLETE")) == VerificationDecision.PENDING

    @pytest.mark.parametrize(
        "statuses",
        [
            ("REJECTED", "NEEDS_INFO", "VERIFIED"),
            ("VERIFIED", "VERIFIED", "REJECTED"),
            ("REJECTED", "INCOMPLETE", "IN_PROGRESS"),
        ],
    )
    def test_any_rejected_wins(self, statuses) -> None:
        assert aggregate_decision(sections(*statuses)) == VerificationDecision.REJECTED

    def test_needs_info_beats_verified(self) -> None:
        assert aggregate_decision(sections("VERIFIED", "NEEDS_INFO", "VERIFIED")) == VerificationDecision.NEEDS_INFO

    def test_missing_section_counts_as_incomplete(self) -> None:
        partial = {"identity": {"status": "VERIFIED"}, "address": {"status": "VERIFIED"}}
        assert aggregate_decision(partial) == VerificationDecision.PENDING
        assert incomplete_sections(partial) == ["businessAffiliation"]


class TestIncompleteSections:
    def test_names_every_non_terminal_section(self) -> None:
        result = incomplete_sections(sections("VERIFIED", "IN_PROGRESS", "COMPLETE"))
        assert result == ["address", "businessAffiliation"]

    def test_terminal_sections_are_not_listed(self) -> None:
        assert incomplete_sections(sections("VERIFIED", "REJECTED", "NEEDS_INFO")) == []


class TestDeriveDecisionReason:
    def test_joins_notes_of_failing_sections(self) -> None:
        reason = derive_decision_reason(
            sections("REJECTED", "VERIFIED", "NEEDS_INFO",
                     notes={"identity": "ID expired", "business": "Need lease"}))
        assert reason == "identity: ID expired; businessAffiliation: Need lease"

    def test_none_when_failing_sections_have_no_notes(self) -> None:
        assert derive_decision_reason(sections("REJECTED", "VERIFIED", "VERIFIED")) is None
