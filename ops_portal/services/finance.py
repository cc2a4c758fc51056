"""
Finance Ledger
=============================================================================
Three append-only ledgers, Admin only:

    ToolPayments      what was paid for a tool, for which month (YYYY-MM)
    Expenses          everything else (vendor, category, recurring Y/N)
    SalaryTransfers   payouts to people; the recipient's name is copied
                      onto the row so the ledger reads without a join

Every entry emits a FINANCE_EVENT notification and an audit entry.

SUMMARY
  monthly_burn      expenses dated in the current month
                    + salary transfers whose monthFor is the current month
                    + tool payments whose monthFor is the current month
  by_category       expense totals per category (all time)
  activity          the 10 most recent entries across all three ledgers
=============================================================================
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.rbac import require_permission
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.domain.entities import Expense, PortalModel, SalaryTransfer, ToolPayment, ToolStatus, User
from ops_portal.errors import EntityNotFound, ValidationFailure
from ops_portal.notifications.sink import NotificationEvent, NotificationPayload, NotificationSink, Party
from ops_portal.observability.logging import get_logger
from ops_portal.services.audit import record_audit
from ops_portal.services.requests import parse_iso_date

logger = get_logger(__name__)

ACTIVITY_FEED_SIZE = 10
UNKNOWN_RECIPIENT = "Unknown"


def current_month() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m")


class ActivityItem(PortalModel):
    type: str
    counterparty: str
    amount: float
    currency: str
    date: str
    category: str


class FinanceSummary(PortalModel):
    month: str
    monthly_burn: float
    total_salaries: float
    active_tools: int
    by_category: dict[str, float] = Field(default_factory=dict)
    activity: list[ActivityItem] = Field(default_factory=list)


def _require_positive(amount: float) -> None:
    if amount is None or amount <= 0:
        raise ValidationFailure("Amount must be greater than zero.")


def _require_month(value: str) -> None:
    try:
        datetime.strptime(value, "%Y-%m")
    except (TypeError, ValueError) as e:
        raise ValidationFailure("Month must be in YYYY-MM format.") from e


class FinanceService:
    def __init__(self, adapter: DataAdapter, notifier: NotificationSink, settings: Settings):
        self.adapter = adapter
        self.notifier = notifier
        self.settings = settings

    def _principal(self, session: SessionContext, action: str) -> User:
        principal = session.require_principal()
        require_permission(principal.role, "finance", action)
        return principal

    # =========================================================================
    # Ledger writes
    # =========================================================================
    async def log_tool_payment(self, session: SessionContext, data: dict[str, Any]) -> ToolPayment:
        principal = self._principal(session, "create")
        _require_positive(data.get("amount"))
        parse_iso_date(data.get("payment_date"), "Payment date")
        _require_month(data.get("month_for"))

        tool_id = data.get("tool_id") or ""
        if await self.adapter.get_tool_by_id(tool_id) is None:
            raise EntityNotFound(f"No tool with id {tool_id}.")

        payment = await self.adapter.create_tool_payment({**data, "paid_by_user_id": principal.user_id})
        await self._announce(principal, "tool_payment", payment.payment_id, payment.to_store())
        return payment

    async def log_expense(self, session: SessionContext, data: dict[str, Any]) -> Expense:
        principal = self._principal(session, "create")
        _require_positive(data.get("amount"))
        parse_iso_date(data.get("date"), "Date")
        if data.get("recurring", "N") not in ("Y", "N"):
            raise ValidationFailure("Recurring must be 'Y' or 'N'.")

        expense = await self.adapter.create_expense(data)
        await self._announce(principal, "expense", expense.expense_id, expense.to_store())
        return expense

    async def log_salary_transfer(self, session: SessionContext, data: dict[str, Any]) -> SalaryTransfer:
        principal = self._principal(session, "create")
        _require_positive(data.get("amount"))
        parse_iso_date(data.get("date"), "Date")
        if data.get("month_for"):
            _require_month(data["month_for"])

        recipient_id = data.get("paid_to_user_id") or ""
        if not recipient_id:
            raise ValidationFailure("Recipient is required.")
        users = {user.user_id: user for user in await self.adapter.list_users()}
        recipient = users.get(recipient_id)

        transfer = await self.adapter.create_salary_transfer(
            {
                **data,
                "paid_to_name": recipient.name if recipient else UNKNOWN_RECIPIENT,
                "created_by_user_id": principal.user_id,
            }
        )
        await self._announce(principal, "salary_transfer", transfer.transfer_id, transfer.to_store())
        return transfer

    async def _announce(self, principal: User, kind: str, entry_id: str, fields: dict[str, Any]) -> None:
        logger.info("finance_entry_logged", kind=kind, entry_id=entry_id, amount=fields.get("amount"),
                    user_id=principal.user_id)
        await record_audit(self.adapter, f"{kind}_logged", principal.user_id, kind, entry_id,
                           {"amount": fields.get("amount"), "currency": fields.get("currency")})
        self.notifier.notify(
            NotificationEvent.FINANCE_EVENT,
            NotificationPayload(
                request_type=kind,
                event="logged",
                id=entry_id,
                requester=Party.from_user(principal),
                fields=fields,
                status="logged",
                deep_link=f"{self.settings.portal_base_url.rstrip('/')}/finance",
            ),
        )

    # =========================================================================
    # Summary
    # =========================================================================
    async def summary(self, session: SessionContext, month: str | None = None) -> FinanceSummary:
        self._principal(session, "view")
        month = month or current_month()
        _require_month(month)

        expenses = await self.adapter.list_expenses()
        payments = await self.adapter.list_tool_payments()
        transfers = await self.adapter.list_salary_transfers()
        tools = await self.adapter.list_tools()
        tool_names = {tool.tool_id: tool.name for tool in tools}

        monthly_burn = (
            sum(e.amount for e in expenses if e.date.startswith(month))
            + sum(s.amount for s in transfers if s.month_for == month)
            + sum(p.amount for p in payments if p.month_for == month)
        )

        by_category: dict[str, float] = defaultdict(float)
        for expense in expenses:
            by_category[expense.category.value] += expense.amount

        activity = [
            *(ActivityItem(type="Expense", counterparty=e.vendor, amount=e.amount, currency=e.currency,
                           date=e.date, category=e.category.value)
              for e in expenses),
            *(ActivityItem(type="Salary", counterparty=s.paid_to_name, amount=s.amount, currency=s.currency,
                           date=s.date, category="Salaries")
              for s in transfers),
            *(ActivityItem(type="Tool Payment", counterparty=tool_names.get(p.tool_id, "Tool"), amount=p.amount,
                           currency=p.currency, date=p.payment_date, category="Tools")
              for p in payments),
        ]
        activity.sort(key=lambda item: item.date, reverse=True)

        return FinanceSummary(
            month=month,
            monthly_burn=round(monthly_burn, 2),
            total_salaries=round(sum(s.amount for s in transfers), 2),
            active_tools=sum(1 for tool in tools if tool.status == ToolStatus.ACTIVE),
            by_category={category: round(total, 2) for category, total in by_category.items()},
            activity=activity[:ACTIVITY_FEED_SIZE],
        )
