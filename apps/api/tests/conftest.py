"""
Shared fixtures for service, repository and router tests.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from pydantic import SecretStr

from edubridge.core.config import settings
from edubridge.modules.applications.models import Application, ApplicationStatus
from edubridge.modules.tuitions.models import ListingStatus, ModerationStatus, TuitionPost
from edubridge.modules.users.models import User, UserRole


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.set = AsyncMock(return_value=True)
    redis.eval = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def signing_secret(monkeypatch):
    """Configure a session token signing secret for the test."""
    monkeypatch.setattr(settings, "access_token_secret", SecretStr("test-signing-secret"))
    return "test-signing-secret"


@pytest.fixture
def student_id():
    return uuid4()


@pytest.fixture
def tutor_id():
    return uuid4()


@pytest.fixture
def sample_student(student_id):
    """Create a sample student user."""
    user = MagicMock(spec=User)
    user.id = student_id
    user.firebase_uid = "firebase-student"
    user.email = "student@example.com"
    user.name = "Sam Student"
    user.role = UserRole.STUDENT
    user.created_at = datetime.now(UTC)
    return user


@pytest.fixture
def sample_tutor(tutor_id):
    """Create a sample teacher user."""
    user = MagicMock(spec=User)
    user.id = tutor_id
    user.firebase_uid = "firebase-tutor"
    user.email = "tutor@example.com"
    user.name = "Tara Tutor"
    user.role = UserRole.TEACHER
    user.created_at = datetime.now(UTC)
    return user


@pytest.fixture
def open_tuition(student_id):
    """Create an open listing owned by the sample student."""
    tuition = MagicMock(spec=TuitionPost)
    tuition.id = uuid4()
    tuition.student_id = student_id
    tuition.title = "Grade 9 Algebra"
    tuition.class_level = "Grade 9"
    tuition.subject = "Mathematics"
    tuition.location = "Dhaka"
    tuition.budget = Decimal("5000.00")
    tuition.status = ListingStatus.OPEN
    tuition.post_status = ModerationStatus.PENDING
    tuition.salary = None
    tuition.selected_application_id = None
    tuition.selected_tutor_id = None
    tuition.selected_at = None
    tuition.payment_status = None
    tuition.paid_at = None
    tuition.created_at = datetime.now(UTC)
    return tuition


@pytest.fixture
def pending_application(open_tuition, tutor_id):
    """Create a pending application to the open listing."""
    application = MagicMock(spec=Application)
    application.id = uuid4()
    application.tuition_id = open_tuition.id
    application.student_id = open_tuition.student_id
    application.tutor_id = tutor_id
    application.apply_status = ApplicationStatus.PENDING
    application.qualification = "BSc Mathematics"
    application.experience = "3 years"
    application.expected_salary = Decimal("4500.00")
    application.subject = None
    application.location = None
    application.class_level = None
    application.payment_status = None
    application.selected_at = None
    application.paid_at = None
    application.created_at = datetime.now(UTC)
    return application


@pytest.fixture
def awaiting_payment(open_tuition, pending_application):
    """Listing and application after the student selected the applicant."""
    pending_application.apply_status = ApplicationStatus.SELECTED_PENDING_PAYMENT
    pending_application.selected_at = datetime.now(UTC)
    open_tuition.status = ListingStatus.SELECTED_PENDING_PAYMENT
    open_tuition.selected_application_id = pending_application.id
    open_tuition.selected_tutor_id = pending_application.tutor_id
    open_tuition.selected_at = pending_application.selected_at
    open_tuition.salary = pending_application.expected_salary
    return open_tuition, pending_application
