from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


SUPPORTED_TERMS: tuple[int, ...] = (1, 3, 6, 12)

DEFAULT_TERM_RATES: dict[int, Decimal] = {
    1: Decimal("3.0"),
    3: Decimal("4.0"),
    6: Decimal("5.0"),
    12: Decimal("6.0"),
}

CENT = Decimal("0.01")

# keeps cent rounding well inside the 28-digit decimal context
MAX_AMOUNT = Decimal("1000000000000")


def to_cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, Enum):
    FOOD = "Food"
    EDUCATION = "Education"
    ENTERTAINMENT = "Entertainment"
    POCKET_MONEY = "Pocket Money"
    OTHER = "Other"
    DEPOSIT_PAYOUT = "Deposit Payout"
    DEPOSIT_REFUND = "Deposit Refund"

    @property
    def is_reserved(self) -> bool:
        return self in (Category.DEPOSIT_PAYOUT, Category.DEPOSIT_REFUND)


class DepositStatus(str, Enum):
    ACTIVE = "active"
    MATURED = "matured"
    WITHDRAWN = "withdrawn"


class Transaction(BaseModel):
    id: UUID
    title: str
    amount: Decimal
    kind: TransactionKind
    category: Category
    occurred_at: datetime
    deposit_id: Optional[UUID] = None
    idempotency_key: Optional[str] = None

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.kind == TransactionKind.INCOME else -self.amount


class Deposit(BaseModel):
    id: UUID
    principal: Decimal
    term_months: int
    annual_rate_percent: Decimal
    interest: Decimal
    total_return: Decimal
    created_at: datetime
    maturity_at: datetime
    status: DepositStatus = DepositStatus.ACTIVE
    settled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def is_active(self) -> bool:
        return self.status == DepositStatus.ACTIVE

    def is_due(self, now: datetime) -> bool:
        return now >= self.maturity_at


class ProfileConfig(BaseModel):
    parent_name: str = ""
    child_name: str = ""
    parental_password: str = "1234"
    term_interest_rates: dict[int, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_TERM_RATES)
    )


class Snapshot(BaseModel):
    version: int = 1
    transactions: list[Transaction] = Field(default_factory=list)
    deposits: list[Deposit] = Field(default_factory=list)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    saved_at: Optional[datetime] = None


# Requests

class AddTransactionRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=80)
    amount: Decimal
    kind: TransactionKind
    category: Category = Category.OTHER
    occurred_at: Optional[datetime] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "Ice cream",
            "amount": 12.50,
            "kind": "expense",
            "category": "Food",
        }
    })


class AllowanceRequest(BaseModel):
    amount: Decimal
    secret: str
    note: Optional[str] = None


class CreateDepositRequest(BaseModel):
    amount: Decimal
    term_months: int

    model_config = ConfigDict(json_schema_extra={
        "example": {"amount": 60.00, "term_months": 3}
    })


class WithdrawDepositRequest(BaseModel):
    secret: str


class UpdateRatesRequest(BaseModel):
    rates: dict[int, Decimal]
    secret: str


class ClearDataRequest(BaseModel):
    secret: str


class ChangeSecretRequest(BaseModel):
    current_secret: str
    new_secret: str
    confirm_secret: str


class UpdateProfileRequest(BaseModel):
    parent_name: str = Field(..., min_length=1)
    child_name: str = Field(..., min_length=1)


# Responses

class InterestQuoteResponse(BaseModel):
    principal: Decimal
    term_months: int
    annual_rate_percent: Decimal
    interest: Decimal
    total_return: Decimal
    maturity_at: datetime


class TransactionResponse(BaseModel):
    transaction: Transaction
    available_balance: Decimal
    message: str


class DepositResponse(BaseModel):
    deposit: Deposit
    ledger_entry: Optional[Transaction] = None
    available_balance: Decimal
    message: str


class BalanceSummary(BaseModel):
    available_balance: Decimal
    total_savings: Decimal
    projected_savings: Decimal
    active_deposits: int
    matured_deposits: int


class LedgerHistoryResponse(BaseModel):
    transactions: list[Transaction]
    total_count: int
    available_balance: Decimal


class DepositListResponse(BaseModel):
    deposits: list[Deposit]
    total_savings: Decimal


class RatesResponse(BaseModel):
    rates: dict[int, Decimal]
    message: str = ""


class TermRateResponse(BaseModel):
    term_months: int
    annual_rate_percent: Decimal


class ProfileResponse(BaseModel):
    parent_name: str
    child_name: str
    term_interest_rates: dict[int, Decimal]


class OperationResponse(BaseModel):
    ok: bool = True
    message: str
