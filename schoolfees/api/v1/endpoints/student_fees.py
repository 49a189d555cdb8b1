from typing import Any, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from schoolfees.api import deps
from schoolfees.services.fee_catalog_service import FeeCatalogService
from schoolfees.schemas.billing import StudentFeeAssign, StudentFeeUpdate, StudentFeeResponse
from schoolfees.schemas.responses import SuccessResponse

router = APIRouter()


@router.get("", response_model=SuccessResponse[List[StudentFeeResponse]])
async def list_student_fees(
    student_id: Optional[UUID] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    List per-student fee assignments, optionally for one student.
    """
    assignments = await FeeCatalogService.list_student_fees(db, student_id=student_id)
    return SuccessResponse(data=[StudentFeeResponse.model_validate(a) for a in assignments])


@router.post("", response_model=SuccessResponse[StudentFeeResponse])
async def assign_student_fee(
    assignment_in: StudentFeeAssign,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Give a student a custom amount or discount for one fee head.
    """
    assignment = await FeeCatalogService.assign_student_fee(db, assignment_in)
    return SuccessResponse(
        data=StudentFeeResponse.model_validate(assignment),
        message="Fee assigned successfully",
    )


@router.patch("/{assignment_id}", response_model=SuccessResponse[StudentFeeResponse])
async def update_student_fee(
    assignment_id: UUID,
    assignment_in: StudentFeeUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    assignment = await FeeCatalogService.update_student_fee(db, assignment_id, assignment_in)
    return SuccessResponse(
        data=StudentFeeResponse.model_validate(assignment),
        message="Student fee updated successfully",
    )
