"""Fee Catalog Service - fee structures and per-student fee assignments"""

from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import Conflict, NotFound, ValidationFailed
from schoolfees.core.logging import get_logger
from schoolfees.models.billing import FeeStructure, StudentFeeAssignment
from schoolfees.models.student import Student
from schoolfees.schemas.billing import (
    FeeStructureCreate,
    FeeStructureUpdate,
    StudentFeeAssign,
    StudentFeeUpdate,
)
from schoolfees.utils.money import ZERO, round_money, to_decimal

logger = get_logger(__name__)

HUNDRED = Decimal("100")


def compute_final_amount(
    assigned_amount: Decimal,
    discount_percent: Optional[Decimal] = None,
    discount_amount: Optional[Decimal] = None,
) -> Decimal:
    """
    assigned - discount, where the discount is either a percentage or a fixed sum.

    Raises:
        ValidationFailed: negative assigned amount, both discount kinds at once,
            percent outside 0..100 or a fixed discount above the assigned amount
    """
    assigned = to_decimal(assigned_amount)
    if assigned < 0:
        raise ValidationFailed("Assigned amount cannot be negative", reason=ValidationFailed.NEGATIVE_VALUE)
    if discount_percent is not None and discount_amount is not None:
        raise ValidationFailed(
            "Use either a percentage or a fixed discount, not both",
            reason=ValidationFailed.INVALID_DISCOUNT,
        )
    if discount_percent is not None:
        percent = to_decimal(discount_percent)
        if not ZERO <= percent <= HUNDRED:
            raise ValidationFailed(
                "Discount percent must be between 0 and 100",
                reason=ValidationFailed.INVALID_DISCOUNT,
            )
        return round_money(assigned - assigned * percent / HUNDRED)
    if discount_amount is not None:
        fixed = to_decimal(discount_amount)
        if fixed < 0 or fixed > assigned:
            raise ValidationFailed(
                "Fixed discount must be between 0 and the assigned amount",
                reason=ValidationFailed.INVALID_DISCOUNT,
            )
        return round_money(assigned - fixed)
    return round_money(assigned)


def _check_amount(amount: Optional[Decimal]) -> None:
    if amount is not None and amount < 0:
        raise ValidationFailed("Fee amount cannot be negative", reason=ValidationFailed.NEGATIVE_VALUE)


class FeeCatalogService:
    # --- Fee structures ---

    @staticmethod
    async def create_structure(db: AsyncSession, data: FeeStructureCreate) -> FeeStructure:
        _check_amount(data.amount)
        structure = FeeStructure(
            name=data.name.strip(),
            amount=round_money(data.amount),
            frequency=data.frequency,
            applicable_classes=[str(c) for c in data.applicable_classes],
            category=data.category,
            description=data.description,
        )
        db.add(structure)
        await db.commit()
        await db.refresh(structure)
        logger.info("Fee structure created", extra={"fee_structure_id": str(structure.id)})
        return structure

    @staticmethod
    async def list_structures(db: AsyncSession) -> List[FeeStructure]:
        result = await db.execute(select(FeeStructure).order_by(FeeStructure.name))
        return list(result.scalars().all())

    @staticmethod
    async def get_structure(db: AsyncSession, structure_id: UUID) -> FeeStructure:
        structure = await db.get(FeeStructure, structure_id)
        if structure is None:
            raise NotFound(f"Fee structure {structure_id} not found")
        return structure

    @staticmethod
    async def update_structure(
        db: AsyncSession,
        structure_id: UUID,
        data: FeeStructureUpdate,
    ) -> FeeStructure:
        """
        Catalog edits only affect invoices generated afterwards.
        A null name, amount, frequency or category leaves that field unchanged.
        """
        structure = await FeeCatalogService.get_structure(db, structure_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("amount") is not None:
            _check_amount(updates["amount"])
            updates["amount"] = round_money(updates["amount"])
        if "applicable_classes" in updates:
            updates["applicable_classes"] = [str(c) for c in updates["applicable_classes"] or []]
        for field, value in updates.items():
            if value is None and field in ("name", "amount", "frequency", "category"):
                continue
            setattr(structure, field, value)
        await db.commit()
        await db.refresh(structure)
        return structure

    @staticmethod
    async def delete_structure(db: AsyncSession, structure_id: UUID) -> None:
        structure = await FeeCatalogService.get_structure(db, structure_id)
        await db.delete(structure)
        await db.commit()
        logger.info("Fee structure deleted", extra={"fee_structure_id": str(structure_id)})

    # --- Student fee assignments ---

    @staticmethod
    async def _get_student(db: AsyncSession, student_id: UUID) -> Student:
        student = await db.get(Student, student_id)
        if student is None:
            raise NotFound(f"Student {student_id} not found")
        return student

    @staticmethod
    async def assign_student_fee(db: AsyncSession, data: StudentFeeAssign) -> StudentFeeAssignment:
        await FeeCatalogService._get_student(db, data.student_id)
        structure = await FeeCatalogService.get_structure(db, data.fee_structure_id)

        assigned = round_money(data.assigned_amount if data.assigned_amount is not None else structure.amount)
        final_amount = compute_final_amount(assigned, data.discount_percent, data.discount_amount)

        assignment = StudentFeeAssignment(
            student_id=data.student_id,
            fee_structure_id=data.fee_structure_id,
            assigned_amount=assigned,
            discount_percent=data.discount_percent,
            discount_amount=data.discount_amount,
            discount_reason=data.discount_reason,
            final_amount=final_amount,
        )
        db.add(assignment)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise Conflict("This fee is already assigned to the student") from exc
        await db.refresh(assignment)
        return assignment

    @staticmethod
    async def update_student_fee(
        db: AsyncSession,
        assignment_id: UUID,
        data: StudentFeeUpdate,
    ) -> StudentFeeAssignment:
        assignment = await db.get(StudentFeeAssignment, assignment_id)
        if assignment is None:
            raise NotFound(f"Student fee {assignment_id} not found")

        updates = data.model_dump(exclude_unset=True)
        # Setting one kind of discount replaces the other
        if "discount_percent" in updates and "discount_amount" not in updates:
            updates["discount_amount"] = None
        if "discount_amount" in updates and "discount_percent" not in updates:
            updates["discount_percent"] = None

        assigned, percent, fixed = _merged_amounts(assignment, updates)
        final_amount = compute_final_amount(assigned, percent, fixed)

        assignment.assigned_amount = assigned
        assignment.discount_percent = percent
        assignment.discount_amount = fixed
        assignment.final_amount = final_amount
        if "discount_reason" in updates:
            assignment.discount_reason = updates["discount_reason"]
        if updates.get("status") is not None:
            assignment.status = updates["status"]

        await db.commit()
        await db.refresh(assignment)
        return assignment

    @staticmethod
    async def list_student_fees(
        db: AsyncSession,
        student_id: Optional[UUID] = None,
    ) -> List[StudentFeeAssignment]:
        query = select(StudentFeeAssignment).order_by(StudentFeeAssignment.created_at.desc())
        if student_id is not None:
            query = query.where(StudentFeeAssignment.student_id == student_id)
        result = await db.execute(query)
        return list(result.scalars().all())


def _merged_amounts(
    assignment: StudentFeeAssignment,
    updates: dict,
) -> Tuple[Decimal, Optional[Decimal], Optional[Decimal]]:
    assigned = updates.get("assigned_amount", assignment.assigned_amount)
    if assigned is None:
        assigned = assignment.assigned_amount
    percent = updates["discount_percent"] if "discount_percent" in updates else assignment.discount_percent
    fixed = updates["discount_amount"] if "discount_amount" in updates else assignment.discount_amount
    return round_money(assigned), percent, fixed
