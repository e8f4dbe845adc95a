"""Transaction import from CSV files."""
import csv
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Union

from ..constants import DATE_FORMAT, DEFAULT_CATEGORY, DEFAULT_SOURCE
from ..models import Transaction
from ..utils.exceptions import ValidationError
from ..utils.logger import get_logger

logger = get_logger()

MIN_COLUMNS = 5


@dataclass
class ImportResult:
    """Imported transactions plus one error string per rejected line."""
    transactions: List[Transaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def success_count(self) -> int:
        return len(self.transactions)

    @property
    def error_count(self) -> int:
        return len(self.errors)


def parse_row(row: List[str]) -> Transaction:
    """
    Parse one ``date,description,amount,category,source[,aiGenerated]`` row.

    Raises:
        ValidationError: the row is malformed
    """
    if len(row) < MIN_COLUMNS:
        raise ValidationError(f"Invalid format: expected at least {MIN_COLUMNS} columns")

    raw_date = row[0].strip()
    try:
        txn_date = datetime.strptime(raw_date, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid date format: {raw_date}")

    description = row[1].strip()
    if not description:
        raise ValidationError("Description cannot be empty")

    raw_amount = row[2].strip()
    try:
        amount = float(raw_amount)
    except ValueError:
        raise ValidationError(f"Invalid amount format: {raw_amount}")

    category = row[3].strip() or DEFAULT_CATEGORY
    source = row[4].strip() or DEFAULT_SOURCE
    ai_generated = len(row) > MIN_COLUMNS and row[5].strip().lower() == "true"

    return Transaction(
        date=txn_date,
        description=description,
        amount=amount,
        category=category,
        source=source,
        ai_generated=ai_generated
    )


def import_from_csv(file_path: Union[str, Path], skip_header: bool = True) -> ImportResult:
    """
    Import transactions from a CSV file.

    Malformed rows are skipped and reported as ``"Line N: reason"``; blank
    lines are ignored. An unreadable file yields a single error entry.
    """
    result = ImportResult()
    path = Path(file_path)

    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            for line_number, row in enumerate(csv.reader(f), start=1):
                if skip_header and line_number == 1:
                    continue
                if not row or not "".join(row).strip():
                    continue
                try:
                    result.transactions.append(parse_row(row))
                except ValidationError as e:
                    result.errors.append(f"Line {line_number}: {e}")
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        result.errors.append(f"Error reading file: {e}")

    logger.info(
        f"Imported {result.success_count} transactions from {path.name} "
        f"({result.error_count} errors)"
    )
    return result
