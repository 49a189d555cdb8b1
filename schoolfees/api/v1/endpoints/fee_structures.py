from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from schoolfees.api import deps
from schoolfees.services.fee_catalog_service import FeeCatalogService
from schoolfees.schemas.billing import FeeStructureCreate, FeeStructureUpdate, FeeStructureResponse
from schoolfees.schemas.responses import SuccessResponse

router = APIRouter()


@router.get("", response_model=SuccessResponse[List[FeeStructureResponse]])
async def list_fee_structures(
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    List the fee catalog.
    """
    structures = await FeeCatalogService.list_structures(db)
    return SuccessResponse(data=[FeeStructureResponse.model_validate(s) for s in structures])


@router.post("", response_model=SuccessResponse[FeeStructureResponse])
async def create_fee_structure(
    structure_in: FeeStructureCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Add a fee head to the catalog.
    """
    structure = await FeeCatalogService.create_structure(db, structure_in)
    return SuccessResponse(
        data=FeeStructureResponse.model_validate(structure),
        message="Fee structure created successfully",
    )


@router.get("/{structure_id}", response_model=SuccessResponse[FeeStructureResponse])
async def get_fee_structure(
    structure_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    structure = await FeeCatalogService.get_structure(db, structure_id)
    return SuccessResponse(data=FeeStructureResponse.model_validate(structure))


@router.patch("/{structure_id}", response_model=SuccessResponse[FeeStructureResponse])
async def update_fee_structure(
    structure_id: UUID,
    structure_in: FeeStructureUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Update a fee head. Invoices already generated keep their amounts.
    """
    structure = await FeeCatalogService.update_structure(db, structure_id, structure_in)
    return SuccessResponse(
        data=FeeStructureResponse.model_validate(structure),
        message="Fee structure updated successfully",
    )


@router.delete("/{structure_id}", response_model=SuccessResponse)
async def delete_fee_structure(
    structure_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await FeeCatalogService.delete_structure(db, structure_id)
    return SuccessResponse(data=None, message="Fee structure deleted")
