"""
Unit tests for tuitions repository layer.

These tests focus on the listing state machine and the guarded writes.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from edubridge.core.errors import InvalidStatusTransitionError
from edubridge.modules.tuitions import repository
from edubridge.modules.tuitions.models import ListingStatus, PaymentStatus
from edubridge.modules.tuitions.repository import (
    VALID_LISTING_TRANSITIONS,
    validate_listing_transition,
)


def _compile(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


class TestListingTransitions:
    """Tests for the listing status state machine."""

    def test_open_transitions(self):
        valid = VALID_LISTING_TRANSITIONS[ListingStatus.OPEN]
        assert ListingStatus.SELECTED_PENDING_PAYMENT in valid
        assert ListingStatus.CLOSED in valid
        # Settlement requires a pending selection first
        assert ListingStatus.SELECTED not in valid

    def test_pending_payment_transitions(self):
        valid = VALID_LISTING_TRANSITIONS[ListingStatus.SELECTED_PENDING_PAYMENT]
        assert ListingStatus.SELECTED in valid
        assert ListingStatus.OPEN in valid
        assert ListingStatus.CLOSED not in valid

    def test_selected_can_only_close(self):
        assert VALID_LISTING_TRANSITIONS[ListingStatus.SELECTED] == {ListingStatus.CLOSED}

    def test_closed_is_terminal(self):
        assert VALID_LISTING_TRANSITIONS[ListingStatus.CLOSED] == set()

    def test_all_statuses_have_transitions_defined(self):
        for status in ListingStatus:
            assert status in VALID_LISTING_TRANSITIONS

    def test_validate_rejects_reopening_closed(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_listing_transition(ListingStatus.CLOSED, ListingStatus.OPEN)

        assert "closed" in exc_info.value.message


class TestSetStatus:
    """Tests for set_status."""

    @pytest.mark.asyncio
    async def test_reopening_clears_selection(self, mock_db, awaiting_payment):
        tuition, _ = awaiting_payment

        await repository.set_status(mock_db, tuition, ListingStatus.OPEN)

        assert tuition.status == ListingStatus.OPEN
        assert tuition.selected_application_id is None
        assert tuition.selected_tutor_id is None
        assert tuition.selected_at is None
        assert tuition.salary is None
        mock_db.flush.assert_called_once()

    @pytest.mark.asyncio
    async def test_closing_selected_keeps_selection(self, mock_db, awaiting_payment):
        tuition, application = awaiting_payment
        tuition.status = ListingStatus.SELECTED

        await repository.set_status(mock_db, tuition, ListingStatus.CLOSED)

        assert tuition.status == ListingStatus.CLOSED
        assert tuition.selected_application_id == application.id

    @pytest.mark.asyncio
    async def test_invalid_transition_does_not_flush(self, mock_db, open_tuition):
        with pytest.raises(InvalidStatusTransitionError):
            await repository.set_status(mock_db, open_tuition, ListingStatus.SELECTED)

        assert open_tuition.status == ListingStatus.OPEN
        mock_db.flush.assert_not_called()


class TestUpdateFields:
    """Tests for update_fields."""

    @pytest.mark.asyncio
    async def test_updates_descriptive_fields(self, mock_db, open_tuition):
        await repository.update_fields(mock_db, open_tuition, budget=Decimal("6000.00"))

        assert open_tuition.budget == Decimal("6000.00")

    @pytest.mark.asyncio
    async def test_rejects_state_fields(self, mock_db, open_tuition):
        with pytest.raises(ValueError):
            await repository.update_fields(mock_db, open_tuition, status=ListingStatus.CLOSED)

        assert open_tuition.status == ListingStatus.OPEN


class TestClaimSelection:
    """Tests for the conditional selection UPDATE."""

    @pytest.mark.asyncio
    async def test_guarded_by_owner_and_open_status(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=1)

        claimed = await repository.claim_selection(
            mock_db,
            tuition_id=uuid4(),
            student_id=uuid4(),
            application_id=uuid4(),
            tutor_id=uuid4(),
            salary=Decimal("4500.00"),
            selected_at=datetime.now(UTC),
        )

        assert claimed is True
        sql = _compile(mock_db.execute.call_args.args[0])
        assert sql.startswith("UPDATE tuitions SET")
        assert "tuitions.student_id" in sql
        assert "tuitions.status" in sql

    @pytest.mark.asyncio
    async def test_falls_back_to_budget_without_salary(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=1)

        await repository.claim_selection(
            mock_db,
            tuition_id=uuid4(),
            student_id=uuid4(),
            application_id=uuid4(),
            tutor_id=uuid4(),
            salary=None,
            selected_at=datetime.now(UTC),
        )

        sql = _compile(mock_db.execute.call_args.args[0])
        assert "salary=tuitions.budget" in sql

    @pytest.mark.asyncio
    async def test_no_matching_row(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=0)

        claimed = await repository.claim_selection(
            mock_db,
            tuition_id=uuid4(),
            student_id=uuid4(),
            application_id=uuid4(),
            tutor_id=uuid4(),
            salary=None,
            selected_at=datetime.now(UTC),
        )

        assert claimed is False


class TestMarkPaid:
    """Tests for mark_paid."""

    @pytest.mark.asyncio
    async def test_settles_pending_selection(self, mock_db, awaiting_payment):
        tuition, _ = awaiting_payment
        paid_at = datetime.now(UTC)

        await repository.mark_paid(mock_db, tuition, paid_at)

        assert tuition.status == ListingStatus.SELECTED
        assert tuition.payment_status == PaymentStatus.PAID
        assert tuition.paid_at == paid_at

    @pytest.mark.asyncio
    async def test_repeat_keeps_first_paid_at(self, mock_db, awaiting_payment):
        tuition, _ = awaiting_payment
        first = datetime(2026, 1, 1, tzinfo=UTC)
        tuition.status = ListingStatus.SELECTED
        tuition.payment_status = PaymentStatus.PAID
        tuition.paid_at = first

        await repository.mark_paid(mock_db, tuition, datetime.now(UTC))

        assert tuition.status == ListingStatus.SELECTED
        assert tuition.paid_at == first

    @pytest.mark.asyncio
    async def test_repeat_on_closed_settled_listing_changes_nothing(
        self, mock_db, awaiting_payment
    ):
        tuition, _ = awaiting_payment
        first = datetime(2026, 1, 1, tzinfo=UTC)
        tuition.status = ListingStatus.CLOSED
        tuition.payment_status = PaymentStatus.PAID
        tuition.paid_at = first

        await repository.mark_paid(mock_db, tuition, datetime.now(UTC))

        assert tuition.status == ListingStatus.CLOSED
        assert tuition.paid_at == first
        mock_db.flush.assert_not_called()

    @pytest.mark.asyncio
    async def test_open_listing_cannot_be_paid(self, mock_db, open_tuition):
        with pytest.raises(InvalidStatusTransitionError):
            await repository.mark_paid(mock_db, open_tuition, datetime.now(UTC))

        assert open_tuition.payment_status is None
