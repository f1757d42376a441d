"""
Pre-write Validation

Every mutation intent is checked against the current snapshot before
anything is sent to the data service. Structural checks (types, positive
price, category matching the type) already happened when the pydantic
intent was built; this module covers the checks that need state:

- a transfer must move money between two different accounts
- a transfer may not exceed the source account's currently known balance
- an edit must target a transaction we know about

Errors block the write. Warnings are shown but never block.
Validation NEVER silently fixes issues.
"""

from decimal import Decimal
from typing import Optional

from balance_tracker.config import AppSettings, get_settings
from balance_tracker.formatting import format_currency
from balance_tracker.models.ledger import (
    LedgerSnapshot,
    NewTransaction,
    TransactionType,
    TransferRequest,
    ValidationIssue,
    ValidationResult,
)


class MutationValidator:
    """Validates form intents against the latest snapshot."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate_transaction(
        self,
        intent: NewTransaction,
        snapshot: LedgerSnapshot,
    ) -> ValidationResult:
        """
        Check a new income/expense.

        Only warnings are possible here: an expense may overdraw its
        payment account, and very large totals are flagged.
        """
        issues = []

        if intent.type == TransactionType.EXPENSE:
            available = snapshot.account_balance(intent.payment_account)
            if intent.total > available:
                issues.append(ValidationIssue(
                    field="payment_account",
                    issue_type="overdraw",
                    message=(
                        f"Saldo {intent.payment_account.label} "
                        f"({format_currency(available)}) lebih kecil dari "
                        f"{format_currency(intent.total)}"
                    ),
                    severity="warning",
                ))

        issues.extend(self._check_amount_size(intent.total))
        return ValidationResult(issues=issues)

    def validate_transfer(
        self,
        request: TransferRequest,
        snapshot: LedgerSnapshot,
    ) -> ValidationResult:
        """Check a transfer; any error here means nothing is written."""
        issues = []

        if request.from_account == request.to_account:
            issues.append(ValidationIssue(
                field="to_account",
                issue_type="same_account",
                message="Akun asal dan tujuan tidak boleh sama",
                severity="error",
            ))

        if request.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Jumlah transfer harus lebih dari nol",
                severity="error",
            ))
        else:
            available = snapshot.account_balance(request.from_account)
            if request.amount > available:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="insufficient_balance",
                    message=(
                        f"Saldo tidak mencukupi: {request.from_account.label} "
                        f"hanya {format_currency(available)}"
                    ),
                    severity="error",
                ))
            issues.extend(self._check_amount_size(request.amount))

        return ValidationResult(issues=issues)

    def validate_edit(
        self,
        transaction_id: str,
        price: Decimal,
        quantity: int,
        snapshot: LedgerSnapshot,
    ) -> ValidationResult:
        """Check an inline price/quantity edit."""
        issues = []

        if not any(tx.id == transaction_id for tx in snapshot.transactions):
            issues.append(ValidationIssue(
                field="id",
                issue_type="not_found",
                message="Transaksi tidak ditemukan, muat ulang data",
                severity="error",
            ))

        if price <= 0:
            issues.append(ValidationIssue(
                field="price",
                issue_type="invalid_value",
                message="Harga harus lebih dari nol",
                severity="error",
            ))

        if quantity < 1:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="invalid_value",
                message="Jumlah minimal 1",
                severity="error",
            ))

        if price > 0 and quantity >= 1:
            issues.extend(self._check_amount_size(price * quantity))

        return ValidationResult(issues=issues)

    def _check_amount_size(self, amount: Decimal) -> list[ValidationIssue]:
        limit = Decimal(str(self._settings.max_transaction_amount_idr))
        if amount > limit:
            return [ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Jumlah {format_currency(amount)} sangat besar, periksa kembali",
                severity="warning",
            )]
        return []

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One message block for the UI: errors first, then warnings."""
        lines = [
            f"❌ {issue.message}" for issue in result.issues
            if issue.severity == "error"
        ]
        lines.extend(f"⚠️ {warning}" for warning in result.warnings)
        return "\n".join(lines)
