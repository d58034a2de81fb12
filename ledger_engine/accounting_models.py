from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, computed_field

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Amounts outside 1e-12 .. 1e12 in magnitude are treated as malformed.
AMOUNT_EXPONENT_LIMIT = 12

_DATETIME_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%d/%m/%Y", "%m/%d/%Y")


def _in_range(amount: Decimal) -> bool:
    if not amount.is_finite():
        return False
    if amount.is_zero():
        return True
    return -AMOUNT_EXPONENT_LIMIT <= amount.adjusted() < AMOUNT_EXPONENT_LIMIT


def to_decimal(value: Any) -> Decimal:
    """Coerce a raw JSON amount into an exact Decimal; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip() or "0")
        except (InvalidOperation, ValueError):
            return ZERO
    if not _in_range(result):
        logger.warning("Ignoring out-of-range amount %r", value)
        return ZERO
    return result


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings, dates and epoch milliseconds into aware UTC datetimes."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            for fmt in _DATETIME_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
            else:
                return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _to_source_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _to_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def _mapping_or_empty(value: Any) -> Any:
    if isinstance(value, (Mapping, BaseModel)):
        return value
    return {}


def _records_only(value: Any) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, (Mapping, BaseModel))]


Money = Annotated[Decimal, BeforeValidator(to_decimal)]
Timestamp = Annotated[Optional[datetime], BeforeValidator(parse_timestamp)]
SourceId = Annotated[Optional[str], BeforeValidator(_to_source_id)]
Text = Annotated[Optional[str], BeforeValidator(_to_text)]
Flag = Annotated[bool, BeforeValidator(_to_flag)]


class SourceRecord(BaseModel):
    """Base for records read from the operational logs; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class Batch(SourceRecord):
    """One inventory purchase lot."""

    id: SourceId = None
    baseCode: Text = None
    quantity: Money = ZERO
    costPrice: Money = ZERO
    sellingPrice: Money = ZERO
    createdAt: Timestamp = None
    storeId: SourceId = None


class LineItem(SourceRecord):
    """A sold line on a POS sale (`items`) or an online order (`products`)."""

    productId: SourceId = None
    qty: Money = ZERO
    isDefective: Flag = False
    defectId: SourceId = None


class Customer(SourceRecord):
    name: Text = None


class Amounts(SourceRecord):
    total: Money = ZERO


class OrderPayments(SourceRecord):
    """Payment rails of an online order; orders never carry a card rail."""

    cash: Money = ZERO
    bkash: Money = ZERO
    nagad: Money = ZERO
    due: Money = ZERO


class SalePayments(OrderPayments):
    card: Money = ZERO


class ReturnEvent(SourceRecord):
    refundToCustomer: Money = ZERO
    timestamp: Timestamp = None
    date: Timestamp = None

    @property
    def occurred_at(self) -> Optional[datetime]:
        return self.timestamp or self.date


class ExchangeEvent(SourceRecord):
    difference: Money = ZERO
    date: Timestamp = None


ReturnHistory = Annotated[List[ReturnEvent], BeforeValidator(_records_only)]
ExchangeHistory = Annotated[List[ExchangeEvent], BeforeValidator(_records_only)]
LineItems = Annotated[List[LineItem], BeforeValidator(_records_only)]


class SaleTransaction(SourceRecord):
    """POS sale as recorded in the sales log."""

    id: SourceId = None
    createdAt: Timestamp = None
    customer: Annotated[Customer, BeforeValidator(_mapping_or_empty)] = Field(default_factory=Customer)
    items: LineItems = Field(default_factory=list)
    amounts: Annotated[Amounts, BeforeValidator(_mapping_or_empty)] = Field(default_factory=Amounts)
    payments: Annotated[SalePayments, BeforeValidator(_mapping_or_empty)] = Field(default_factory=SalePayments)
    returnHistory: ReturnHistory = Field(default_factory=list)
    exchangeHistory: ExchangeHistory = Field(default_factory=list)

    @property
    def customer_name(self) -> Optional[str]:
        return self.customer.name

    @property
    def line_items(self) -> List[LineItem]:
        return self.items


class OrderTransaction(SourceRecord):
    """Social/online order; same shape as a sale with `products` and `customerName`."""

    id: SourceId = None
    createdAt: Timestamp = None
    customerName: Text = None
    products: LineItems = Field(default_factory=list)
    amounts: Annotated[Amounts, BeforeValidator(_mapping_or_empty)] = Field(default_factory=Amounts)
    payments: Annotated[OrderPayments, BeforeValidator(_mapping_or_empty)] = Field(default_factory=OrderPayments)
    returnHistory: ReturnHistory = Field(default_factory=list)
    exchangeHistory: ExchangeHistory = Field(default_factory=list)

    @property
    def customer_name(self) -> Optional[str]:
        return self.customerName

    @property
    def line_items(self) -> List[LineItem]:
        return self.products


class DefectRecord(SourceRecord):
    id: SourceId = None
    costPrice: Money = ZERO
    originalSellingPrice: Money = ZERO


class InventoryRecord(SourceRecord):
    productId: SourceId = None
    costPrice: Money = ZERO


class Posting(BaseModel):
    """A single debit/credit line of a journal entry."""

    account: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO


class JournalEntry(BaseModel):
    """Balanced set of postings recording one business event."""

    id: str
    date: datetime
    type: str
    description: str
    postings: List[Posting] = Field(default_factory=list)
    createdAt: datetime

    @computed_field  # type: ignore[misc]
    @property
    def totalDebit(self) -> Decimal:
        return sum((p.debit for p in self.postings), ZERO)

    @computed_field  # type: ignore[misc]
    @property
    def totalCredit(self) -> Decimal:
        return sum((p.credit for p in self.postings), ZERO)

    @computed_field  # type: ignore[misc]
    @property
    def balanced(self) -> bool:
        return self.totalDebit == self.totalCredit


class LedgerPosting(BaseModel):
    """One line of an account's posting history with the running balance after it."""

    date: datetime
    ref: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    balanceAfter: Decimal = ZERO


class LedgerAccount(BaseModel):
    name: str
    totalDebit: Decimal = ZERO
    totalCredit: Decimal = ZERO
    balance: Decimal = ZERO
    postings: List[LedgerPosting] = Field(default_factory=list)


class LedgerSnapshot(BaseModel):
    """Full derived ledger; replaces any previous snapshot wholesale."""

    journalEntries: List[JournalEntry] = Field(default_factory=list)
    ledgerAccounts: Dict[str, LedgerAccount] = Field(default_factory=dict)
    generatedAt: datetime


RecordT = TypeVar("RecordT", bound=SourceRecord)


def coerce_records(model: Type[RecordT], rows: Optional[Iterable[Any]], *, source: str = "records") -> List[RecordT]:
    """Parse raw rows into source models, skipping rows that are not objects at all."""
    if rows is None:
        return []
    if isinstance(rows, (str, bytes, Mapping)):
        logger.warning("Expected a list of %s, got %s; treating as empty", source, type(rows).__name__)
        return []
    parsed: List[RecordT] = []
    for idx, row in enumerate(rows):
        if isinstance(row, model):
            parsed.append(row)
            continue
        if not isinstance(row, Mapping):
            logger.warning("Skipping %s row %d: expected object, got %s", source, idx, type(row).__name__)
            continue
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s row %d: %s", source, idx, exc)
    return parsed


__all__ = [
    "Amounts",
    "Batch",
    "Customer",
    "DefectRecord",
    "ExchangeEvent",
    "InventoryRecord",
    "JournalEntry",
    "LedgerAccount",
    "LedgerPosting",
    "LedgerSnapshot",
    "LineItem",
    "OrderPayments",
    "OrderTransaction",
    "Posting",
    "ReturnEvent",
    "SalePayments",
    "SaleTransaction",
    "ZERO",
    "coerce_records",
    "parse_timestamp",
    "to_decimal",
]
