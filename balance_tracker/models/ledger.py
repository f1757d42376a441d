"""
Core Data Models for Balance

These models define the schemas for everything read from and written to
the hosted data service:

1. Transactions (income / expense rows, with a store-computed total)
2. Account ledger entries (signed amounts posted against one account)
3. The computed views (aggregate balance, per-account balance)
4. Mutation intents coming from the forms
5. The immutable snapshot the UI renders from

Balances are never stored here; they are read back from the store's views.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Whether money is coming in or going out."""
    INCOME = "income"
    EXPENSE = "expense"


class ExpenseCategory(str, Enum):
    FOODS = "Foods"
    TRANSPORTATION = "Transportation"
    EQUIPMENT = "Equipment"
    ENTERTAINMENT = "Entertainment"


class IncomeCategory(str, Enum):
    SALARY = "Salary"
    ETC = "Etc"


class AccountType(str, Enum):
    """
    The three cash pools a ledger entry can be posted against.

    Income always lands in REKENING; expenses are paid from any of them.
    """
    REKENING = "rekening"
    DANA = "dana"
    POCKET = "pocket"

    @property
    def label(self) -> str:
        return self.value.capitalize()


INCOME_ACCOUNT = AccountType.REKENING


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense row.

    New rows always carry exactly the category matching `type` (enforced
    on NewTransaction). Older stored rows may have neither; they are kept
    and shown under the type label. `total` is computed by the store as
    price * quantity;
    when a row arrives without it we derive it the same way.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier assigned by the store"
    )
    type: TransactionType
    expense_category: Optional[ExpenseCategory] = None
    income_category: Optional[IncomeCategory] = None
    notes: Optional[str] = None
    price: Decimal = Field(
        ...,
        ge=0,
        description="Unit price in IDR"
    )
    quantity: int = Field(
        default=1,
        ge=1,
        description="Number of units"
    )
    total: Optional[Decimal] = Field(
        default=None,
        description="price * quantity, computed by the store"
    )
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # bigint primary keys arrive as ints
        return str(v) if isinstance(v, int) else v

    @model_validator(mode="after")
    def check_category_and_total(self) -> "Transaction":
        # Stored rows may lack a category; only a contradicting one is rejected.
        if self.type == TransactionType.EXPENSE and self.income_category is not None:
            raise ValueError("Expense transactions cannot carry an income category")
        if self.type == TransactionType.INCOME and self.expense_category is not None:
            raise ValueError("Income transactions cannot carry an expense category")
        if self.total is None:
            self.total = self.price * self.quantity
        return self

    @property
    def category(self) -> str:
        """Whichever category field is populated, else the type label."""
        if self.type == TransactionType.INCOME:
            return self.income_category.value if self.income_category else "Income"
        return self.expense_category.value if self.expense_category else "Expense"

    @property
    def signed_total(self) -> Decimal:
        """Total with sign for net calculations."""
        return self.total if self.type == TransactionType.INCOME else -self.total


class TransactionWithBalance(Transaction):
    """A transaction row from the list view, with the store's running balance."""

    running_balance: Decimal = Field(
        default=Decimal("0"),
        description="Cumulative balance computed by the store"
    )


class NewTransaction(BaseModel):
    """
    Form intent for adding a transaction.

    `payment_account` only matters for expenses; income always goes
    to the income account.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType
    expense_category: Optional[ExpenseCategory] = None
    income_category: Optional[IncomeCategory] = None
    notes: Optional[str] = None
    price: Decimal = Field(
        ...,
        gt=0,
        description="Unit price in IDR"
    )
    quantity: int = Field(
        default=1,
        ge=1,
    )
    payment_account: AccountType = AccountType.REKENING

    @model_validator(mode="after")
    def check_category(self) -> "NewTransaction":
        _check_category_matches_type(
            self.type, self.expense_category, self.income_category
        )
        if not self.notes:
            self.notes = None
        return self

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity

    @property
    def ledger_account(self) -> AccountType:
        """The account the linked ledger entry is posted against."""
        if self.type == TransactionType.INCOME:
            return INCOME_ACCOUNT
        return self.payment_account

    def to_insert_row(self) -> dict:
        """Row payload for the transactions table."""
        return {
            "type": self.type.value,
            "expense_category": (
                self.expense_category.value if self.expense_category else None
            ),
            "income_category": (
                self.income_category.value if self.income_category else None
            ),
            "notes": self.notes,
            "price": str(self.price),
            "quantity": self.quantity,
        }


def _check_category_matches_type(
    tx_type: TransactionType,
    expense_category: Optional[ExpenseCategory],
    income_category: Optional[IncomeCategory],
) -> None:
    if tx_type == TransactionType.EXPENSE:
        if expense_category is None or income_category is not None:
            raise ValueError("Expense transactions need exactly an expense category")
    else:
        if income_category is None or expense_category is not None:
            raise ValueError("Income transactions need exactly an income category")


# =============================================================================
# LEDGER
# =============================================================================

class AccountLedgerEntry(BaseModel):
    """
    A signed amount posted against one account.

    Linked to its originating transaction for income/expense entries;
    unlinked for the two halves of a transfer.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    account_type: AccountType
    amount: Decimal
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "transaction_id", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        return str(v) if isinstance(v, int) else v

    @model_validator(mode="after")
    def check_amount(self) -> "AccountLedgerEntry":
        if self.amount == 0:
            raise ValueError("Ledger entries must carry a non-zero amount")
        return self

    @classmethod
    def for_transaction(
        cls,
        transaction_id: str,
        intent: NewTransaction,
    ) -> "AccountLedgerEntry":
        """Build the single entry that accompanies a new transaction."""
        account = intent.ledger_account
        if intent.type == TransactionType.INCOME:
            return cls(
                transaction_id=transaction_id,
                account_type=account,
                amount=intent.total,
                notes=f"Income masuk ke {account.value}",
            )
        return cls(
            transaction_id=transaction_id,
            account_type=account,
            amount=-intent.total,
            notes=f"Bayar dari {account.value}",
        )

    def to_insert_row(self) -> dict:
        row = {
            "account_type": self.account_type.value,
            "amount": str(self.amount),
            "notes": self.notes,
        }
        if self.transaction_id is not None:
            row["transaction_id"] = self.transaction_id
        return row


class TransferRequest(BaseModel):
    """Form intent for moving money between two accounts."""
    model_config = ConfigDict(str_strip_whitespace=True)

    from_account: AccountType
    to_account: AccountType
    amount: Decimal = Field(
        ...,
        description="Amount to move, in IDR"
    )
    notes: Optional[str] = None

    def ledger_entries(self) -> tuple[AccountLedgerEntry, AccountLedgerEntry]:
        """The debit and credit halves, in that order."""
        debit = AccountLedgerEntry(
            account_type=self.from_account,
            amount=-self.amount,
            notes=self.notes or f"Transfer ke {self.to_account.value}",
        )
        credit = AccountLedgerEntry(
            account_type=self.to_account,
            amount=self.amount,
            notes=self.notes or f"Transfer dari {self.from_account.value}",
        )
        return debit, credit


# =============================================================================
# COMPUTED VIEWS
# =============================================================================

class BalanceView(BaseModel):
    """Aggregate row: totals over all transactions."""

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")

    @classmethod
    def empty(cls) -> "BalanceView":
        return cls()


class AccountBalance(BaseModel):
    """Per-account row: sum of that account's ledger entries."""

    account_type: AccountType
    balance: Decimal = Decimal("0")


class LedgerSnapshot(BaseModel):
    """
    Immutable bundle of the three read projections.

    A new snapshot is fetched after every mutation; nothing is patched
    in place.
    """
    model_config = ConfigDict(frozen=True)

    snapshot_id: UUID = Field(default_factory=uuid4)
    transactions: tuple[TransactionWithBalance, ...] = ()
    balance: BalanceView = Field(default_factory=BalanceView.empty)
    account_balances: tuple[AccountBalance, ...] = ()
    fetched_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @classmethod
    def empty(cls) -> "LedgerSnapshot":
        return cls()

    def account_balance(self, account: AccountType) -> Decimal:
        """Currently known balance of one account (zero if the view has no row)."""
        for row in self.account_balances:
            if row.account_type == account:
                return row.balance
        return Decimal("0")

    def balances_by_account(self) -> dict[AccountType, Decimal]:
        """Balance for every account, in display order."""
        return {account: self.account_balance(account) for account in AccountType}


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'same_account', 'insufficient_balance')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the client-side checks run before any write.

    Errors block the mutation; warnings are shown but do not block.
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
