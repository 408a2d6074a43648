"""
Payment Service Layer

Checkout creation and settlement of selected tuitions.

Settlement is driven by the payment callback, which the provider or the
browser may deliver more than once. Idempotence comes from the database:
the ledger insert is ON CONFLICT DO NOTHING and the state updates are
plain assignments. The Redis lock only keeps concurrent deliveries of the
same session from racing each other.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from uuid import UUID

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser
from edubridge.core.config import settings
from edubridge.core.email import send_payment_receipt, send_tutor_payment_notice
from edubridge.core.errors import (
    BadRequestError,
    ConflictError,
    MetadataMissingError,
    NotFoundError,
    PaymentNotCompletedError,
)
from edubridge.core.payments import CheckoutSession, PaymentGateway
from edubridge.core.redis import acquire_lock, release_lock
from edubridge.modules.applications import repository as application_repository
from edubridge.modules.applications.models import (
    ACTIVE_SELECTION_STATUSES,
    Application,
    ApplicationStatus,
)
from edubridge.modules.payments import repository
from edubridge.modules.payments.models import PaymentRecord
from edubridge.modules.shared import utcnow
from edubridge.modules.tuitions import repository as tuition_repository
from edubridge.modules.tuitions.models import ListingStatus, PaymentStatus, TuitionPost
from edubridge.modules.users.models import UserRole
from edubridge.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Metadata keys settlement cannot proceed without
REQUIRED_METADATA = ("tuition_id", "application_id")

SETTLEMENT_LOCK_PREFIX = "settlement:"


@dataclass(frozen=True)
class FeeSplit:
    """How a tuition salary is divided between the tutor and the platform."""

    salary: Decimal
    admin_fee: Decimal
    tutor_amount: Decimal


@dataclass(frozen=True)
class SettlementResult:
    session_id: str
    tuition_id: UUID
    application_id: UUID
    newly_recorded: bool


def compute_fee_split(salary: Decimal, fee_percent: float | Decimal | None = None) -> FeeSplit:
    """
    Split a salary into platform fee and tutor share.

    The fee is rounded half-up to cents; the tutor receives the remainder so
    the two parts always add up to the salary.
    """
    percent = Decimal(str(settings.platform_fee_percent if fee_percent is None else fee_percent))
    salary = Decimal(salary).quantize(CENTS, rounding=ROUND_HALF_UP)
    admin_fee = (salary * percent / 100).quantize(CENTS, rounding=ROUND_HALF_UP)
    return FeeSplit(salary=salary, admin_fee=admin_fee, tutor_amount=salary - admin_fee)


def _listing_salary(tuition: TuitionPost) -> Decimal:
    return tuition.salary if tuition.salary is not None else tuition.budget


async def create_checkout(
    db: AsyncSession,
    gateway: PaymentGateway,
    application_id: UUID,
) -> CheckoutSession:
    """
    Open a checkout session for a selection awaiting payment.

    Every amount and party is read from the database; nothing is taken
    from the client except the application id. No local state changes.

    Raises:
        NotFoundError: If the application, listing or either party is missing
        ConflictError: If the application is not the listing's pending selection
        ServerError: If the provider call fails
    """
    application = await application_repository.get_by_id(db, application_id)
    if not application:
        raise NotFoundError("Application", application_id)

    if application.apply_status != ApplicationStatus.SELECTED_PENDING_PAYMENT:
        raise ConflictError(
            "This application is not awaiting payment.",
            error_code="NOT_AWAITING_PAYMENT",
        )

    tuition = await tuition_repository.get_by_id(db, application.tuition_id)
    if not tuition:
        raise NotFoundError("Tuition", application.tuition_id)
    if (
        tuition.status != ListingStatus.SELECTED_PENDING_PAYMENT
        or tuition.selected_application_id != application.id
    ):
        raise ConflictError(
            "This application is not the tuition's pending selection.",
            error_code="NOT_AWAITING_PAYMENT",
        )

    tutor = await UserRepository.get_by_id(db, application.tutor_id)
    student = await UserRepository.get_by_id(db, tuition.student_id)
    if not tutor or not student:
        raise NotFoundError("User")

    split = compute_fee_split(_listing_salary(tuition))

    metadata = {
        "tuition_id": str(tuition.id),
        "application_id": str(application.id),
        "tutor_id": str(tutor.id),
        "student_id": str(student.id),
        "salary": str(split.salary),
        "tutor_amount": str(split.tutor_amount),
        "admin_fee": str(split.admin_fee),
        "tuition_title": tuition.title,
        "tutor_name": tutor.name,
        "tutor_email": tutor.email,
        "student_name": student.name,
        "student_email": student.email,
    }

    session = await gateway.create_checkout_session(
        product_name=tuition.title,
        amount=split.salary,
        metadata=metadata,
        success_url=settings.checkout_success_url,
        cancel_url=settings.checkout_cancel_url,
        customer_email=student.email,
    )

    logger.info(
        f"Checkout session {session.session_id} created for application {application.id} "
        f"(salary {split.salary}, fee {split.admin_fee})"
    )
    return session


def _parse_metadata_id(metadata: dict[str, str], key: str) -> UUID:
    try:
        return UUID(metadata[key])
    except ValueError as e:
        raise BadRequestError(f"Checkout session metadata '{key}' is not a valid id") from e


def _settled_split(metadata: dict[str, str], tuition: TuitionPost) -> FeeSplit:
    """Amounts charged at checkout, recomputed from the listing if absent."""
    try:
        return FeeSplit(
            salary=Decimal(metadata["salary"]),
            admin_fee=Decimal(metadata["admin_fee"]),
            tutor_amount=Decimal(metadata["tutor_amount"]),
        )
    except (KeyError, InvalidOperation):
        return compute_fee_split(_listing_salary(tuition))


async def finalize_payment(
    db: AsyncSession,
    redis: Redis | None,
    gateway: PaymentGateway,
    session_id: str,
) -> SettlementResult:
    """
    Settle a paid checkout session.

    Steps:
    1. Ask the provider for the session; it must be paid
    2. Read tuition and application ids from the session metadata
    3. Take the per-session lock (skipped when Redis is down)
    4. In one transaction: record the payment if absent, then mark the
       application and listing selected and paid. If the selection was
       withdrawn meanwhile, the payment is recorded as refund_required and
       the application and listing are left alone
    5. On the first successful settlement only, email receipts

    Safe to call repeatedly for the same session.

    Raises:
        BadRequestError: If no session id is given or metadata ids are malformed
        ServerError: If the provider lookup fails
        PaymentNotCompletedError: If the session is not paid
        MetadataMissingError: If tuition_id or application_id is absent
        ConflictError: If another delivery of this session is being settled
        NotFoundError: If the application or listing no longer exists
        ConflictError: If the selection was withdrawn before settlement
            (error_code SELECTION_WITHDRAWN, raised after the refund row commits)
    """
    if not session_id:
        raise BadRequestError("session_id is required")

    session = await gateway.retrieve_session(session_id)
    if not session.is_paid:
        logger.info(f"Callback for unpaid session {session_id}: {session.payment_status}")
        raise PaymentNotCompletedError(session.payment_status)

    missing = [key for key in REQUIRED_METADATA if not session.metadata.get(key)]
    if missing:
        logger.error(f"Paid session {session_id} is missing metadata: {missing}")
        raise MetadataMissingError(missing)

    tuition_id = _parse_metadata_id(session.metadata, "tuition_id")
    application_id = _parse_metadata_id(session.metadata, "application_id")

    lock_key = f"{SETTLEMENT_LOCK_PREFIX}{session_id}"
    lock_token = await acquire_lock(redis, lock_key, settings.settlement_lock_seconds)
    if lock_token is None:
        raise ConflictError(
            "This payment is already being processed.",
            error_code="SETTLEMENT_IN_PROGRESS",
        )

    try:
        try:
            # Same lock order as selection: listing first, then application
            tuition = await tuition_repository.get_for_update(db, tuition_id)
            application = await application_repository.get_for_update(db, application_id)
            if not application or application.tuition_id != tuition_id:
                raise NotFoundError("Application", application_id)
            if not tuition:
                raise NotFoundError("Tuition", tuition_id)

            split = _settled_split(session.metadata, tuition)
            paid_at = utcnow()
            selection_current = (
                tuition.selected_application_id == application.id
                and application.apply_status in ACTIVE_SELECTION_STATUSES
            )

            newly_recorded = await repository.insert_if_absent(
                db,
                stripe_session_id=session.session_id,
                tuition_id=tuition.id,
                application_id=application.id,
                tutor_id=application.tutor_id,
                student_id=tuition.student_id,
                amount=split.salary,
                tutor_amount=split.tutor_amount,
                admin_fee=split.admin_fee,
                currency=settings.stripe_currency,
                paid_at=paid_at,
                status=PaymentStatus.PAID if selection_current else PaymentStatus.REFUND_REQUIRED,
            )
            if selection_current:
                application = await application_repository.mark_paid(
                    db, application, tuition, paid_at
                )
                tuition = await tuition_repository.mark_paid(db, tuition, paid_at)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    finally:
        await release_lock(redis, lock_key, lock_token)

    if not selection_current:
        logger.error(
            f"Session {session_id} paid after application {application_id} lost its selection, "
            "recorded for refund"
        )
        raise ConflictError(
            "The selection was withdrawn before payment settled. "
            "The payment is recorded for refund.",
            error_code="SELECTION_WITHDRAWN",
        )

    if newly_recorded:
        logger.info(f"Payment settled: session {session_id}, tuition {tuition_id}")
        await _send_receipts(db, application, tuition, split)
    else:
        logger.info(f"Duplicate settlement callback for session {session_id}, no changes recorded")

    return SettlementResult(
        session_id=session.session_id,
        tuition_id=tuition_id,
        application_id=application_id,
        newly_recorded=newly_recorded,
    )


async def _send_receipts(
    db: AsyncSession,
    application: Application,
    tuition: TuitionPost,
    split: FeeSplit,
) -> None:
    try:
        student = await UserRepository.get_by_id(db, tuition.student_id)
        tutor = await UserRepository.get_by_id(db, application.tutor_id)
        if not student or not tutor:
            logger.warning(f"Skipping receipts for tuition {tuition.id}: party no longer exists")
            return

        await send_payment_receipt(
            to_email=student.email,
            student_name=student.name,
            tuition_title=tuition.title,
            tutor_name=tutor.name,
            amount=str(split.salary),
            currency=settings.stripe_currency,
        )
        await send_tutor_payment_notice(
            to_email=tutor.email,
            tutor_name=tutor.name,
            tuition_title=tuition.title,
            tutor_amount=str(split.tutor_amount),
            currency=settings.stripe_currency,
        )
    except Exception as e:
        logger.error(f"Failed to send payment receipts for tuition {tuition.id}: {e}", exc_info=True)


async def list_payments(db: AsyncSession, caller: CurrentUser) -> list[PaymentRecord]:
    """Students see what they paid, teachers what they earned, admins everything."""
    if caller.role == UserRole.ADMIN:
        return await repository.list_all(db)
    if caller.role == UserRole.TEACHER:
        return await repository.list_by_tutor(db, caller.id)
    return await repository.list_by_student(db, caller.id)

