"""
Domain models for the Heartland webhook handlers.

Webhook and API payloads are partially-known schemas: a handful of fields
matter to the checks and everything else is carried through untouched. The
models below therefore keep values exactly as received (no coercion, so a
string ``"12"`` never silently becomes a number) and allow extra keys.
Strategies use the typed accessors to decide whether a field is usable.
"""
from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

Number = Union[int, float, Decimal]
TransactionKind = Literal["sale", "return", "other"]

SALE_TICKET_TYPES = frozenset({"ticket", "sale", "sale-ticket"})
RETURN_TYPES = frozenset({"return"})
ITEM_LINE_TYPE = "ItemLine"

T = TypeVar("T")


def is_number(value: Any) -> bool:
    """True for int/float/Decimal values; bools and numeric strings are not numbers."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def as_number(value: Any) -> Optional[Number]:
    return value if is_number(value) else None


def _normalized_tag(value: Any) -> Optional[str]:
    return value.strip().lower() if isinstance(value, str) else None


class _OpenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")


class Transaction(_OpenModel):
    """
    A Heartland sales transaction as delivered by the transaction webhook.
    """

    id: Any = Field(None, description="Ticket/return id; numeric when well-formed.")
    type: Any = Field(None, description='Type tag such as "Ticket" or "Return".')
    total: Any = Field(None, description="Transaction total.")
    source_location_id: Any = Field(None, description="Location where stock moved.")
    balance: Any = Field(None, description="Outstanding amount.")
    completed: Any = Field(
        None,
        validation_alias=AliasChoices("completed?", "completed"),
        serialization_alias="completed?",
        description="Heartland's literal `completed?` flag.",
    )
    status: Any = None
    completed_at: Any = None
    local_completed_at: Any = None
    original_subtotal: Any = None
    total_discounts: Any = None
    customer_id: Any = None
    customer_name: Any = None
    sales_rep: Any = None
    parent_transaction_id: Any = None

    @classmethod
    def from_json(cls, body: str) -> "Transaction":
        """
        Parse a webhook body. Raises ValueError for invalid JSON or a non-object payload.
        """
        raw = json.loads(body)
        if not isinstance(raw, dict):
            raise ValueError("payload is not an object")
        return cls.model_validate(raw)

    @property
    def numeric_id(self) -> Optional[Number]:
        return self.id if is_number(self.id) else None

    @property
    def is_sale_ticket(self) -> bool:
        return _normalized_tag(self.type) in SALE_TICKET_TYPES

    @property
    def is_return(self) -> bool:
        return _normalized_tag(self.type) in RETURN_TYPES

    def summary(self, kind: TransactionKind) -> Dict[str, Any]:
        """Fields worth logging for every webhook call."""
        return {
            "kind": kind,
            "id": self.id,
            "type": self.type,
            "total": self.total,
            "parent_transaction_id": self.parent_transaction_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "source_location_id": self.source_location_id,
            "sales_rep": self.sales_rep,
            "status": self.status,
            "completed_flag": self.completed,
            "balance": self.balance,
            "completed_at": self.completed_at,
            "local_completed_at": self.local_completed_at,
        }


class TicketLine(_OpenModel):
    """
    Ticket line as returned by ``GET /api/sales/tickets/{ticket_id}/lines``.
    """

    id: Any = None
    type: Any = Field(None, description="ItemLine, TaxLine, ...")
    item_id: Any = None
    item_description: Any = None
    description: Any = None
    adjusted_unit_price: Any = None
    original_unit_price: Any = None
    price_adjustments: Any = None

    @property
    def is_item_line(self) -> bool:
        return self.type == ITEM_LINE_TYPE

    @property
    def label(self) -> Optional[str]:
        """First non-null description field, as Heartland fills either one."""
        if self.item_description is not None:
            return str(self.item_description)
        if self.description is not None:
            return str(self.description)
        return None


class InventoryValueRow(_OpenModel):
    """
    Inventory value row as returned by ``GET /api/inventory/values`` grouped by item and location.
    """

    item_id: Any = None
    location_id: Any = None
    qty: Any = None
    qty_on_hand: Any = None
    qty_committed: Any = None
    qty_on_po: Any = None
    qty_in_transit: Any = None
    qty_available: Any = None
    unit_cost: Any = None

    @property
    def effective_qty(self) -> Number:
        """Available quantity if known, else on-hand quantity, else zero."""
        if is_number(self.qty_available):
            return self.qty_available
        if is_number(self.qty_on_hand):
            return self.qty_on_hand
        return 0


class Page(BaseModel, Generic[T]):
    """Paginated list envelope used by Heartland list endpoints."""

    model_config = ConfigDict(extra="allow")

    total: int = 0
    pages: int = 1
    results: List[T] = Field(default_factory=list)

    @field_validator("results", mode="before")
    @classmethod
    def _null_results(cls, value: Any) -> Any:
        return [] if value is None else value


class InventoryItem(_OpenModel):
    id: Any = None
    description: Any = None
    long_description: Any = None
    cost: Any = None
    price: Any = None
    public_id: Any = None
    default_lookup_id: Any = None
    custom: Optional[Dict[str, Any]] = None


class ItemCustomFields(_OpenModel):
    upc: Any = None
    tags: Any = None
    theme: Any = None
    series: Any = None
    retired: Any = None
    category: Any = None
    department: Any = None
    launch_date: Any = None
    bam_category: Any = None
    bricklink_id: Any = None
    tax_category: Any = None
    sub_department: Any = None
    retirement_date: Any = None


class ItemCreatedPayload(_OpenModel):
    """
    Body of the ``item_created`` webhook. Only ``id`` is required.
    """

    id: int = Field(..., strict=True, description="Heartland item id.")
    description: Any = None
    long_description: Any = None
    public_id: Any = None
    cost: Any = None
    price: Any = None
    primary_barcode: Any = None
    active: Optional[bool] = Field(None, alias="active?")
    track_inventory: Optional[bool] = Field(None, alias="track_inventory?")
    created_at: Any = None
    updated_at: Any = None
    custom: Optional[ItemCustomFields] = None

    @field_validator("custom", mode="before")
    @classmethod
    def _ignore_malformed_custom(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @property
    def bricklink_id(self) -> Optional[str]:
        if self.custom is None or self.custom.bricklink_id is None:
            return None
        return str(self.custom.bricklink_id).strip() or None


class CatalogReferenceItem(BaseModel):
    """BrickLink catalog entry plus the image URL to attach, when one exists."""

    item: Dict[str, Any] = Field(default_factory=dict)
    image_url: Optional[str] = None


class CheckResult(BaseModel):
    name: str
    executed: bool
    passed: bool


class CheckReport(BaseModel):
    """
    Aggregate verdict for one transaction.

    ``overall`` is the AND of every executed check and is False when nothing ran.
    """

    overall: bool
    results: List[CheckResult] = Field(default_factory=list)

    @property
    def first_passing(self) -> Optional[str]:
        for result in self.results:
            if result.executed and result.passed:
                return result.name
        return None


class WebhookResponse(BaseModel):
    """Response body of the transaction webhook."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok"] = "ok"
    transaction_kind: TransactionKind = Field("other", serialization_alias="transactionKind")
    transaction_id: Any = Field(None, serialization_alias="transactionId")
    transaction_type: Any = Field(None, serialization_alias="transactionType")
    check: bool = False
    completion_strategy: Optional[str] = Field(None, serialization_alias="completionStrategy")
    checks: List[CheckResult] = Field(default_factory=list)

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = [
    "Number",
    "TransactionKind",
    "SALE_TICKET_TYPES",
    "RETURN_TYPES",
    "ITEM_LINE_TYPE",
    "is_number",
    "as_number",
    "Transaction",
    "TicketLine",
    "InventoryValueRow",
    "Page",
    "InventoryItem",
    "ItemCustomFields",
    "ItemCreatedPayload",
    "CatalogReferenceItem",
    "CheckResult",
    "CheckReport",
    "WebhookResponse",
]
