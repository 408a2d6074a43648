"""
Unit tests for applications repository layer.

These tests focus on the state machine transitions and the bulk
rejection statements issued during selection.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from edubridge.core.errors import InvalidStatusTransitionError
from edubridge.modules.applications import repository
from edubridge.modules.applications.models import ApplicationStatus
from edubridge.modules.applications.repository import (
    VALID_STATUS_TRANSITIONS,
    validate_transition,
)
from edubridge.modules.tuitions.models import PaymentStatus


class TestStatusTransitions:
    """Tests for status transition state machine."""

    def test_valid_transitions_from_pending(self):
        valid = VALID_STATUS_TRANSITIONS[ApplicationStatus.PENDING]
        assert ApplicationStatus.SELECTED_PENDING_PAYMENT in valid
        assert ApplicationStatus.REJECTED in valid
        # Payment must follow selection
        assert ApplicationStatus.SELECTED not in valid

    def test_valid_transitions_from_selected_pending_payment(self):
        valid = VALID_STATUS_TRANSITIONS[ApplicationStatus.SELECTED_PENDING_PAYMENT]
        assert ApplicationStatus.SELECTED in valid
        assert ApplicationStatus.REJECTED in valid
        assert ApplicationStatus.PENDING not in valid

    def test_terminal_states(self):
        assert VALID_STATUS_TRANSITIONS[ApplicationStatus.SELECTED] == set()
        assert VALID_STATUS_TRANSITIONS[ApplicationStatus.REJECTED] == set()

    def test_all_statuses_have_transitions_defined(self):
        for status in ApplicationStatus:
            assert status in VALID_STATUS_TRANSITIONS

    def test_rejected_cannot_be_selected(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_transition(
                ApplicationStatus.REJECTED, ApplicationStatus.SELECTED_PENDING_PAYMENT
            )

        assert exc_info.value.current_status == "rejected"
        assert exc_info.value.new_status == "selected_pending_payment"


class TestRejectOtherPending:
    """Tests for the competing-application fan-out."""

    @pytest.mark.asyncio
    async def test_only_touches_other_pending_applications(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=4)

        rejected = await repository.reject_other_pending(mock_db, uuid4(), uuid4())

        assert rejected == 4
        statement = mock_db.execute.call_args.args[0]
        sql = str(statement.compile(dialect=postgresql.dialect()))
        assert sql.startswith("UPDATE applications SET apply_status=")
        assert "applications.tuition_id = " in sql
        assert "applications.apply_status = " in sql
        assert "applications.id != " in sql

    @pytest.mark.asyncio
    async def test_reject_all_pending_has_no_exclusion(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=0)

        rejected = await repository.reject_all_pending(mock_db, uuid4())

        assert rejected == 0
        sql = str(mock_db.execute.call_args.args[0].compile(dialect=postgresql.dialect()))
        assert "applications.id != " not in sql


class TestSetStatus:
    """Tests for set_status."""

    @pytest.mark.asyncio
    async def test_applies_extra_fields(self, mock_db, pending_application):
        selected_at = datetime.now(UTC)

        await repository.set_status(
            mock_db,
            pending_application,
            ApplicationStatus.SELECTED_PENDING_PAYMENT,
            selected_at=selected_at,
        )

        assert pending_application.apply_status == ApplicationStatus.SELECTED_PENDING_PAYMENT
        assert pending_application.selected_at == selected_at

    @pytest.mark.asyncio
    async def test_invalid_transition_leaves_application(self, mock_db, pending_application):
        pending_application.apply_status = ApplicationStatus.REJECTED

        with pytest.raises(InvalidStatusTransitionError):
            await repository.set_status(mock_db, pending_application, ApplicationStatus.PENDING)

        assert pending_application.apply_status == ApplicationStatus.REJECTED
        mock_db.flush.assert_not_called()


class TestMarkPaid:
    """Tests for mark_paid."""

    @pytest.mark.asyncio
    async def test_copies_listing_details(self, mock_db, awaiting_payment):
        tuition, application = awaiting_payment
        paid_at = datetime.now(UTC)

        await repository.mark_paid(mock_db, application, tuition, paid_at)

        assert application.apply_status == ApplicationStatus.SELECTED
        assert application.payment_status == PaymentStatus.PAID
        assert application.paid_at == paid_at
        assert application.subject == "Mathematics"
        assert application.location == "Dhaka"
        assert application.class_level == "Grade 9"

    @pytest.mark.asyncio
    async def test_repeat_keeps_first_paid_at(self, mock_db, awaiting_payment):
        tuition, application = awaiting_payment
        first = datetime(2026, 1, 1, tzinfo=UTC)
        application.apply_status = ApplicationStatus.SELECTED
        application.paid_at = first

        await repository.mark_paid(mock_db, application, tuition, datetime.now(UTC))

        assert application.paid_at == first

    @pytest.mark.asyncio
    async def test_withdrawn_selection_cannot_be_paid(self, mock_db, awaiting_payment):
        tuition, application = awaiting_payment
        application.apply_status = ApplicationStatus.REJECTED

        with pytest.raises(InvalidStatusTransitionError):
            await repository.mark_paid(mock_db, application, tuition, datetime.now(UTC))

        assert application.payment_status is None


class TestTutorHasActiveSelection:
    """Tests for the account-deletion guard."""

    @pytest.mark.asyncio
    async def test_locks_every_application_of_the_tutor(self, mock_db):
        result = MagicMock()
        result.scalars.return_value = [ApplicationStatus.PENDING, ApplicationStatus.REJECTED]
        mock_db.execute.return_value = result

        assert await repository.tutor_has_active_selection(mock_db, uuid4()) is False

        sql = str(mock_db.execute.call_args.args[0].compile(dialect=postgresql.dialect()))
        assert sql.rstrip().endswith("FOR UPDATE")
        assert "applications.tutor_id" in sql
        assert "apply_status IN" not in sql

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [ApplicationStatus.SELECTED_PENDING_PAYMENT, ApplicationStatus.SELECTED],
    )
    async def test_active_selection_found(self, mock_db, status):
        result = MagicMock()
        result.scalars.return_value = [ApplicationStatus.PENDING, status]
        mock_db.execute.return_value = result

        assert await repository.tutor_has_active_selection(mock_db, uuid4()) is True
