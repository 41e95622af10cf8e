"""CSV trade import.

Rows are mapped onto TradeRecord fields through a column mapping. A row
that cannot be turned into a trade is reported with its line number and
the rest of the file is still imported.
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from p2pprofit.db.store import TradeStore
from p2pprofit.errors import ImportFormatError
from p2pprofit.models import TRADE_STATUSES, TradeRecord

logger = logging.getLogger(__name__)

# TradeRecord field -> CSV column header.
DEFAULT_COLUMN_MAPPING = {
    "order_id": "orderId",
    "side": "side",
    "asset": "asset",
    "fiat_currency": "fiatCurrency",
    "price": "price",
    "amount": "amount",
    "total_fiat": "totalFiat",
    "fee_fiat": "feeFiat",
    "payment_method": "paymentMethod",
    "counterparty": "counterparty",
    "status": "status",
    "completed_at": "completedAt",
    "notes": "notes",
}

REQUIRED_FIELDS = ("order_id", "side", "price", "amount", "total_fiat", "completed_at")


class RowError(BaseModel):
    """A CSV row that could not be imported."""

    line: int = Field(..., ge=1, description="Line number in the file")
    message: str = Field(..., description="What was wrong with the row")

    model_config = {"frozen": True}


class ImportResult(BaseModel):
    """Trades parsed from a CSV file."""

    trades: list[TradeRecord] = Field(default_factory=list, description="Parsed trades")
    errors: list[RowError] = Field(default_factory=list, description="Rejected rows")
    inserted: int = Field(default=0, ge=0, description="Trades added to the ledger")
    updated: int = Field(default=0, ge=0, description="Trades overwritten in the ledger")
    duplicates: int = Field(default=0, ge=0, description="Trades already in the ledger")


def _cell(row: dict[str, Any], field: str, mapping: dict[str, str]) -> Optional[str]:
    column = mapping.get(field, field)
    value = row.get(column)
    if value is None:
        # Fall back to a snake_case header named after the field.
        value = row.get(field)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def transform_row(row: dict[str, Any], mapping: Optional[dict[str, str]] = None) -> TradeRecord:
    """Turn one CSV row into a trade.

    Args:
        row: Row from csv.DictReader.
        mapping: TradeRecord field -> column header.

    Returns:
        The parsed trade.

    Raises:
        ValueError: If a required field is missing or a value is invalid.
    """
    mapping = mapping or DEFAULT_COLUMN_MAPPING
    values = {}
    for field in DEFAULT_COLUMN_MAPPING:
        value = _cell(row, field, mapping)
        if value is not None:
            values[field] = value

    missing = [f for f in REQUIRED_FIELDS if f not in values]
    if missing:
        raise ValueError(f"Missing required field(s): {', '.join(missing)}")

    status = values.get("status", "COMPLETED").upper()
    values["status"] = status if status in TRADE_STATUSES else "COMPLETED"

    try:
        values["completed_at"] = datetime.fromisoformat(values["completed_at"])
    except ValueError:
        raise ValueError(
            f"completed_at must be an ISO 8601 timestamp, got {values['completed_at']!r}"
        )

    try:
        return TradeRecord.model_validate(values)
    except ValidationError as e:
        messages = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValueError(messages)


def parse_csv(path: Path, column_mapping: Optional[dict[str, str]] = None) -> ImportResult:
    """Parse a CSV file of trades.

    Args:
        path: CSV file with a header row.
        column_mapping: TradeRecord field -> column header overrides.

    Returns:
        ImportResult with parsed trades and rejected rows.

    Raises:
        ImportFormatError: If the file cannot be read or decoded, or has no header.
    """
    mapping = {**DEFAULT_COLUMN_MAPPING, **(column_mapping or {})}
    trades = []
    errors = []

    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            try:
                if not reader.fieldnames:
                    raise ImportFormatError(f"{path} has no header row")
                for row in reader:
                    try:
                        trades.append(transform_row(row, mapping))
                    except ValueError as e:
                        errors.append(RowError(line=reader.line_num, message=str(e)))
                        logger.warning("Rejected row %d of %s: %s", reader.line_num, path, e)
            except (UnicodeDecodeError, csv.Error) as e:
                # Decoding is chunked, so this is the last line read, not the bad one.
                raise ImportFormatError(
                    f"{path} is not a readable UTF-8 CSV after line {reader.line_num}: {e}"
                ) from e
    except OSError as e:
        raise ImportFormatError(f"Cannot read {path}: {e}") from e

    logger.info("Parsed %d trades from %s (%d rejected)", len(trades), path, len(errors))
    return ImportResult(trades=trades, errors=errors)


def import_csv(
    store: TradeStore,
    path: Path,
    column_mapping: Optional[dict[str, str]] = None,
    overwrite: bool = False,
) -> ImportResult:
    """Parse a CSV file and save its trades to the ledger.

    Args:
        store: Ledger to save into.
        path: CSV file to import.
        column_mapping: TradeRecord field -> column header overrides.
        overwrite: Replace trades whose order ID is already stored.

    Returns:
        ImportResult including insert/update/duplicate counts.
    """
    result = parse_csv(path, column_mapping)
    counts = store.save_trades(result.trades, overwrite=overwrite)
    return result.model_copy(update=counts)
