"""
Record Models for Finance Grid

One tagged pydantic model per dataset kind. These replace free-form row
dicts: a field either belongs to the record type or it doesn't, and the
Record Store rejects the ones that don't.

Python attributes are snake_case; the wire and cache form is camelCase
(`gettingAmount`), matching what the remote store sends and expects.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar, Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from finance_grid.calculations import projected_annual_revenue, yet_to_be_recovered


# =============================================================================
# FIELD TYPES
# =============================================================================

def _blank_as_zero(value: Any) -> Any:
    """
    Remote rows and cache snapshots may carry null or "" for numbers.

    Whole floats from the JSON round trip come back as ints, so 360000.0
    loads as 360000 and edit drafts read the same before and after a reload.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _blank_as_empty(value: Any) -> Any:
    return "" if value is None else value


# Amounts travel as JSON numbers, not pydantic's default decimal strings
Amount = Annotated[
    Decimal,
    BeforeValidator(_blank_as_zero),
    PlainSerializer(float, return_type=float, when_used="json"),
]

Count = Annotated[int, BeforeValidator(_blank_as_zero)]

Text = Annotated[str, BeforeValidator(_blank_as_empty)]


class FieldKind(str, Enum):
    """How a record field is stored, edited and aggregated."""
    IDENTITY = "identity"
    ORDINAL = "ordinal"
    TEXT = "text"
    STATUS = "status"
    AMOUNT = "amount"
    COUNT = "count"
    DERIVED = "derived"

    @property
    def is_numeric(self) -> bool:
        return self in (FieldKind.AMOUNT, FieldKind.COUNT, FieldKind.DERIVED)

    @property
    def is_descriptive(self) -> bool:
        return self in (FieldKind.TEXT, FieldKind.STATUS)

    @property
    def is_editable(self) -> bool:
        return self in (
            FieldKind.TEXT,
            FieldKind.STATUS,
            FieldKind.AMOUNT,
            FieldKind.COUNT,
        )


class ProjectStatus(str, Enum):
    """
    Status choices offered by the editor.

    Stored values are NOT restricted to these: older rows hold comma-joined
    strings like "Completed, In Progress, On Hold" and are kept verbatim.
    """
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"
    CANCELLED = "Cancelled"

    @classmethod
    def choices(cls, current: Optional[str] = None) -> list[str]:
        """Values for a status picker, keeping a legacy current value selectable."""
        values = [status.value for status in cls]
        if current and current not in values:
            values.insert(0, current)
        return values


# =============================================================================
# RECORDS
# =============================================================================

class GridRecord(BaseModel):
    """
    Base for every dataset row.

    Identity is a temporary UUID string until the remote store assigns one.
    Remote rows may send their identity as `_id`.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        "id": FieldKind.IDENTITY,
        "sr_no": FieldKind.ORDINAL,
    }
    DERIVED_FIELD: ClassVar[Optional[str]] = None

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        validation_alias=AliasChoices("id", "_id"),
        description="Record identity (temporary until the remote store assigns one)"
    )
    sr_no: Count = Field(
        default=0,
        ge=0,
        description="1-based position in the dataset"
    )

    @field_validator("id", mode="before")
    @classmethod
    def stringify_identity(cls, v: Any) -> str:
        """Remote identities may arrive as numbers or ObjectId-like values."""
        if v is None or v == "":
            return str(uuid4())
        return str(v)

    def derived_value(self) -> Decimal:
        raise NotImplementedError(f"{type(self).__name__} has no derived field")

    def to_wire(self, include_identity: bool = True) -> dict[str, Any]:
        """Serialize to the remote/cache JSON shape."""
        exclude = None if include_identity else {"id"}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


class ProjectRecord(GridRecord):
    """A tracked project and how much of its cost is still outstanding."""

    FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        **GridRecord.FIELD_KINDS,
        "project_name": FieldKind.TEXT,
        "status": FieldKind.STATUS,
        "dev": FieldKind.AMOUNT,
        "extra": FieldKind.AMOUNT,
        "invest": FieldKind.AMOUNT,
        "getting_amount": FieldKind.AMOUNT,
        "yet_to_be_recovered": FieldKind.DERIVED,
    }
    DERIVED_FIELD: ClassVar[Optional[str]] = "yet_to_be_recovered"

    project_name: Text = ""
    status: Text = ""
    dev: Amount = Field(default=Decimal("0"), ge=0)
    extra: Amount = Field(default=Decimal("0"), ge=0)
    invest: Amount = Field(default=Decimal("0"), ge=0)
    getting_amount: Amount = Field(default=Decimal("0"), ge=0)
    # May go negative once more has been received than was spent
    yet_to_be_recovered: Amount = Decimal("0")

    def derived_value(self) -> Decimal:
        return yet_to_be_recovered(
            self.dev, self.extra, self.invest, self.getting_amount
        )


class SubscriptionRevenueRecord(GridRecord):
    """Projected revenue for one subscription plan."""

    FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        **GridRecord.FIELD_KINDS,
        "revenue_source": FieldKind.TEXT,
        "subscriptions_availed": FieldKind.COUNT,
        "projected_monthly_revenue": FieldKind.AMOUNT,
        "projected_annual_revenue": FieldKind.DERIVED,
        "subscribed": FieldKind.TEXT,
        "profit": FieldKind.AMOUNT,
    }
    DERIVED_FIELD: ClassVar[Optional[str]] = "projected_annual_revenue"

    revenue_source: Text = ""
    subscriptions_availed: Count = Field(default=0, ge=0)
    projected_monthly_revenue: Amount = Field(default=Decimal("0"), ge=0)
    projected_annual_revenue: Amount = Field(default=Decimal("0"), ge=0)
    subscribed: Text = ""
    profit: Amount = Field(default=Decimal("0"), ge=0)

    def derived_value(self) -> Decimal:
        return projected_annual_revenue(self.projected_monthly_revenue)


class FinancialSummaryRecord(GridRecord):
    """
    One line of the financial summary.

    No per-row derived field: the profit lines are recomputed from the
    expense lines at the collection level.
    """

    FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        **GridRecord.FIELD_KINDS,
        "category": FieldKind.TEXT,
        "amount": FieldKind.AMOUNT,
    }

    category: Text = ""
    # Profit lines can be negative
    amount: Amount = Decimal("0")
