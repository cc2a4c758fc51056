"""
Finance Ledger Endpoints (Admin only)
=============================================================================
  GET  /finance/summary?month=YYYY-MM      burn, category totals, activity
  POST /finance/tool-payments              {toolId, paymentDate, monthFor, amount, ...}
  POST /finance/expenses                   {date, vendor, category, amount, ...}
  POST /finance/salary-transfers           {paidToUserId, date, amount, ...}

Amounts must be positive. Each logged row triggers a FINANCE_EVENT
notification.
=============================================================================
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from ops_portal.api.deps import get_finance_service
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import (
    Expense,
    ExpenseCategory,
    PortalModel,
    SalaryTransfer,
    ToolPayment,
)
from ops_portal.services.finance import FinanceService, FinanceSummary

router = APIRouter(prefix="/finance", tags=["Finance"])


# =============================================================================
# Request Schemas
# =============================================================================
class ToolPaymentCreate(PortalModel):
    tool_id: str
    payment_date: str = Field(..., description="YYYY-MM-DD")
    month_for: str = Field(..., description="YYYY-MM")
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    method: str = ""
    reference_id: str = ""
    invoice_link: str = ""
    notes: str = ""


class ExpenseCreate(PortalModel):
    date: str = Field(..., description="YYYY-MM-DD")
    vendor: str = ""
    category: ExpenseCategory = ExpenseCategory.MISC
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    recurring: str = Field("N", pattern="^[YN]$")
    linked_tool_id: str | None = None
    notes: str = ""


class SalaryTransferCreate(PortalModel):
    paid_to_user_id: str
    date: str = Field(..., description="YYYY-MM-DD")
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    month_for: str = ""
    method: str = ""
    reference_id: str = ""
    notes: str = ""


# =============================================================================
# Endpoints
# =============================================================================
@router.get("/summary", response_model=FinanceSummary)
async def summary(
    month: str | None = Query(None, description="YYYY-MM; defaults to the current month"),
    session: SessionContext = Depends(get_session),
    service: FinanceService = Depends(get_finance_service),
) -> FinanceSummary:
    return await service.summary(session, month)


@router.post("/tool-payments", response_model=ToolPayment, status_code=status.HTTP_201_CREATED)
async def log_tool_payment(
    body: ToolPaymentCreate,
    session: SessionContext = Depends(get_session),
    service: FinanceService = Depends(get_finance_service),
) -> ToolPayment:
    return await service.log_tool_payment(session, body.model_dump())


@router.post("/expenses", response_model=Expense, status_code=status.HTTP_201_CREATED)
async def log_expense(
    body: ExpenseCreate,
    session: SessionContext = Depends(get_session),
    service: FinanceService = Depends(get_finance_service),
) -> Expense:
    return await service.log_expense(session, body.model_dump())


@router.post("/salary-transfers", response_model=SalaryTransfer, status_code=status.HTTP_201_CREATED)
async def log_salary_transfer(
    body: SalaryTransferCreate,
    session: SessionContext = Depends(get_session),
    service: FinanceService = Depends(get_finance_service),
) -> SalaryTransfer:
    return await service.log_salary_transfer(session, body.model_dump())
