"""Standard chart of accounts seeded by AccountService.seed_standard_chart."""

from dataclasses import dataclass

from gl_kernel.models.account import AccountType


@dataclass(frozen=True)
class StandardAccount:
    code: str
    name: str
    account_type: AccountType
    description: str | None = None
    parent_code: str | None = None


# Parents precede their children.
STANDARD_CHART: tuple[StandardAccount, ...] = (
    # Assets (1xxx)
    StandardAccount("1000", "Cash", AccountType.ASSET, "Current Assets"),
    StandardAccount("1001", "Cash - Agent Custody", AccountType.ASSET, "Current Assets", "1000"),
    StandardAccount("1002", "Cash - Unit Admin Custody", AccountType.ASSET, "Current Assets", "1000"),
    StandardAccount("1003", "Cash - Area Admin Custody", AccountType.ASSET, "Current Assets", "1000"),
    StandardAccount("1004", "Cash - Forum Admin Custody", AccountType.ASSET, "Current Assets", "1000"),
    StandardAccount("1100", "Bank Account", AccountType.ASSET, "Current Assets"),
    StandardAccount("1200", "Accounts Receivable", AccountType.ASSET, "Current Assets"),
    # Liabilities (2xxx)
    StandardAccount("2100", "Member Wallet Liability", AccountType.LIABILITY, "Current Liabilities"),
    StandardAccount("2200", "Death Benefit Payable", AccountType.LIABILITY, "Current Liabilities"),
    # Equity (3xxx)
    StandardAccount("3000", "Retained Earnings", AccountType.EQUITY, "Equity"),
    # Revenue (4xxx)
    StandardAccount("4100", "Registration Fee Revenue", AccountType.REVENUE, "Operating Revenue"),
    StandardAccount("4200", "Contribution Revenue", AccountType.REVENUE, "Operating Revenue"),
    StandardAccount("4300", "Donation Revenue", AccountType.REVENUE, "Non-Operating Revenue"),
    # Expenses (5xxx)
    StandardAccount("5100", "Death Benefit Expense", AccountType.EXPENSE, "Operating Expenses"),
    StandardAccount("5200", "Administrative Expenses", AccountType.EXPENSE, "Operating Expenses"),
)

STANDARD_CODES = frozenset(account.code for account in STANDARD_CHART)
