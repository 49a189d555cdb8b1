"""API V1 Router"""

from fastapi import APIRouter, Depends

from schoolfees.api import deps

# Import endpoint routers
from schoolfees.api.v1.endpoints import (
    fee_structures, student_fees, invoices,
    payments, reports, fee_settings,
)

# Create API v1 router
api_router = APIRouter()

# One capability check covers every fees route: reads need fees:read, writes fees:write
fees_router = APIRouter(dependencies=[Depends(deps.require_fee_access)])

# Include endpoint routers with prefixes and tags
fees_router.include_router(fee_structures.router, prefix="/structures", tags=["Fee Structures"])
fees_router.include_router(student_fees.router, prefix="/student-fees", tags=["Student Fees"])
fees_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
fees_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
fees_router.include_router(reports.router, prefix="/reports", tags=["Fee Reports"])
fees_router.include_router(fee_settings.router, prefix="/settings", tags=["Fee Settings"])

api_router.include_router(fees_router, prefix="/fees")
