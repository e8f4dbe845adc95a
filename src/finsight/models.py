"""Transaction data model."""
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Transaction:
    """One dated, signed monetary event. Positive amount is income, negative is expense."""
    date: date
    description: str
    amount: float
    category: str
    source: str
    ai_generated: bool = False

    def __post_init__(self):
        if self.date is None:
            raise ValueError("Transaction date is required")
        if self.amount is None:
            raise ValueError("Transaction amount is required")

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def to_csv_row(self) -> str:
        """Render as date,description,amount,category,source."""
        return f"{self.date.isoformat()},{self.description},{self.amount},{self.category},{self.source}"
