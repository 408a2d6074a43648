"""
Unit tests for tuitions service layer.

These tests cover:
- Listing creation and role-scoped listing views
- Ownership checks that do not reveal other students' listings
- Edit, moderation, close and delete rules
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from edubridge.core.auth import CurrentUser
from edubridge.core.errors import (
    ConflictError,
    InvalidStatusError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from edubridge.modules.tuitions.models import ListingStatus, ModerationStatus
from edubridge.modules.tuitions.schemas import TuitionCreate, TuitionUpdate
from edubridge.modules.tuitions.service import (
    close_tuition,
    create_tuition,
    delete_tuition,
    list_tuitions,
    moderate_tuition,
    update_tuition,
)
from edubridge.modules.users.models import UserRole


class TestCreateTuition:
    """Tests for create_tuition."""

    @pytest.mark.asyncio
    async def test_create_success(self, mock_db, student_id, open_tuition):
        data = TuitionCreate(
            title="Grade 9 Algebra",
            class_level="Grade 9",
            subject="Mathematics",
            location="Dhaka",
            budget=Decimal("5000.00"),
        )

        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.create = AsyncMock(return_value=open_tuition)

            result = await create_tuition(mock_db, student_id, data)

        assert result is open_tuition
        mock_repo.create.assert_called_once_with(
            mock_db,
            student_id,
            title="Grade 9 Algebra",
            class_level="Grade 9",
            subject="Mathematics",
            location="Dhaka",
            budget=Decimal("5000.00"),
        )
        mock_db.commit.assert_called_once()


class TestListTuitions:
    """Tests for role-scoped listing views."""

    @pytest.mark.asyncio
    async def test_admin_sees_all(self, mock_db):
        caller = CurrentUser(id=uuid4(), role=UserRole.ADMIN)

        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.list_all = AsyncMock(return_value=[])
            mock_repo.list_by_student = AsyncMock()

            await list_tuitions(mock_db, caller)

        mock_repo.list_all.assert_called_once()
        mock_repo.list_by_student.assert_not_called()

    @pytest.mark.asyncio
    async def test_student_sees_own(self, mock_db, student_id, open_tuition):
        caller = CurrentUser(id=student_id, role=UserRole.STUDENT)

        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.list_by_student = AsyncMock(return_value=[open_tuition])

            result = await list_tuitions(mock_db, caller)

        assert result == [open_tuition]
        mock_repo.list_by_student.assert_called_once_with(mock_db, student_id)


class TestUpdateTuition:
    """Tests for update_tuition."""

    @pytest.mark.asyncio
    async def test_update_open_listing(self, mock_db, student_id, open_tuition):
        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=open_tuition)
            mock_repo.update_fields = AsyncMock(return_value=open_tuition)

            await update_tuition(
                mock_db, student_id, open_tuition.id, TuitionUpdate(location="Sylhet")
            )

        mock_repo.update_fields.assert_called_once_with(mock_db, open_tuition, location="Sylhet")
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_update_not_open(self, mock_db, student_id, awaiting_payment):
        tuition, _ = awaiting_payment

        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=tuition)
            mock_repo.update_fields = AsyncMock()

            with pytest.raises(ConflictError) as exc_info:
                await update_tuition(mock_db, student_id, tuition.id, TuitionUpdate(title="New"))

        assert exc_info.value.error_code == "TUITION_NOT_EDITABLE"
        mock_repo.update_fields.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_students_listing_looks_missing(self, mock_db, open_tuition):
        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=open_tuition)

            with pytest.raises(NotFoundError) as not_owned:
                await update_tuition(mock_db, uuid4(), open_tuition.id, TuitionUpdate(title="X"))

            mock_repo.get_for_update = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError) as missing:
                await update_tuition(mock_db, uuid4(), open_tuition.id, TuitionUpdate(title="X"))

        assert not_owned.value.status_code == missing.value.status_code == 404
        assert not_owned.value.message == missing.value.message


class TestModerateTuition:
    """Tests for moderate_tuition."""

    @pytest.mark.asyncio
    async def test_approve(self, mock_db, open_tuition):
        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=open_tuition)
            mock_repo.set_moderation = AsyncMock(return_value=open_tuition)

            await moderate_tuition(mock_db, uuid4(), open_tuition.id, "approved")

        mock_repo.set_moderation.assert_called_once_with(
            mock_db, open_tuition, ModerationStatus.APPROVED
        )
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("post_status", [None, "pending", "published"])
    async def test_invalid_decision(self, mock_db, post_status):
        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock()

            with pytest.raises(InvalidStatusError):
                await moderate_tuition(mock_db, uuid4(), uuid4(), post_status)

        mock_repo.get_for_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_listing(self, mock_db):
        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError):
                await moderate_tuition(mock_db, uuid4(), uuid4(), "rejected")


class TestCloseTuition:
    """Tests for close_tuition."""

    @pytest.mark.asyncio
    async def test_closing_open_listing_rejects_pending(self, mock_db, student_id, open_tuition):
        with (
            patch("edubridge.modules.tuitions.service.repository") as mock_repo,
            patch("edubridge.modules.tuitions.service.application_repository") as mock_apps,
        ):
            mock_repo.get_for_update = AsyncMock(return_value=open_tuition)
            mock_repo.set_status = AsyncMock(return_value=open_tuition)
            mock_apps.reject_all_pending = AsyncMock(return_value=3)

            await close_tuition(mock_db, student_id, open_tuition.id)

        mock_repo.set_status.assert_called_once_with(mock_db, open_tuition, ListingStatus.CLOSED)
        mock_apps.reject_all_pending.assert_called_once_with(mock_db, open_tuition.id)
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_closing_selected_listing(self, mock_db, student_id, awaiting_payment):
        tuition, _ = awaiting_payment
        tuition.status = ListingStatus.SELECTED

        with (
            patch("edubridge.modules.tuitions.service.repository") as mock_repo,
            patch("edubridge.modules.tuitions.service.application_repository") as mock_apps,
        ):
            mock_repo.get_for_update = AsyncMock(return_value=tuition)
            mock_repo.set_status = AsyncMock(return_value=tuition)
            mock_apps.reject_all_pending = AsyncMock()

            await close_tuition(mock_db, student_id, tuition.id)

        mock_apps.reject_all_pending.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_rejected_by_state_machine(self, mock_db, student_id, awaiting_payment):
        tuition, _ = awaiting_payment

        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=tuition)
            mock_repo.set_status = AsyncMock(
                side_effect=InvalidStatusTransitionError(
                    "tuition", "selected_pending_payment", "closed"
                )
            )

            with pytest.raises(InvalidStatusTransitionError):
                await close_tuition(mock_db, student_id, tuition.id)

        mock_db.commit.assert_not_called()


class TestDeleteTuition:
    """Tests for delete_tuition."""

    @pytest.mark.asyncio
    async def test_delete_open_listing(self, mock_db, student_id, open_tuition):
        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=open_tuition)
            mock_repo.delete_by_id = AsyncMock(return_value=True)

            await delete_tuition(mock_db, student_id, open_tuition.id)

        mock_repo.delete_by_id.assert_called_once_with(mock_db, open_tuition.id)
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_with_selection(self, mock_db, student_id, awaiting_payment):
        tuition, _ = awaiting_payment

        with patch("edubridge.modules.tuitions.service.repository") as mock_repo:
            mock_repo.get_for_update = AsyncMock(return_value=tuition)
            mock_repo.delete_by_id = AsyncMock()

            with pytest.raises(ConflictError) as exc_info:
                await delete_tuition(mock_db, student_id, tuition.id)

        assert exc_info.value.error_code == "TUITION_HAS_SELECTION"
        mock_repo.delete_by_id.assert_not_called()
