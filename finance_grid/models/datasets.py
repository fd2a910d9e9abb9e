"""
Dataset definitions.

A DatasetSchema ties a record type to its remote endpoint, its cache key
and its built-in fallback rows. The Record Store, the remote client and
the edit session all look fields up through it.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finance_grid.models.records import (
    FieldKind,
    FinancialSummaryRecord,
    GridRecord,
    ProjectRecord,
    SubscriptionRevenueRecord,
)


class DatasetSchema(BaseModel):
    """Static description of one dataset."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Dataset name used in logs and lookups")
    endpoint: str = Field(..., description="Path segment on the remote store")
    cache_key: str = Field(..., description="Key of the durable cache snapshot")
    record_type: type[GridRecord]
    row_level: bool = Field(
        default=True,
        description="Remote store exposes per-row create/update/delete"
    )
    recompute_summary: bool = Field(
        default=False,
        description="Recompute the summary profit rows after amount edits"
    )
    defaults: tuple[dict[str, Any], ...] = Field(
        default=(),
        description="Fallback rows when neither remote nor cache has data"
    )

    @property
    def field_kinds(self) -> dict[str, FieldKind]:
        return self.record_type.FIELD_KINDS

    @property
    def derived_field(self) -> Optional[str]:
        return self.record_type.DERIVED_FIELD

    @property
    def numeric_fields(self) -> list[str]:
        return [name for name, kind in self.field_kinds.items() if kind.is_numeric]

    @property
    def editable_fields(self) -> list[str]:
        return [name for name, kind in self.field_kinds.items() if kind.is_editable]

    def resolve_field(self, name: str) -> Optional[str]:
        """
        Map a wire name (`gettingAmount`) or attribute name
        (`getting_amount`) to the attribute name. None if unknown.
        """
        if name in self.field_kinds:
            return name
        for attr in self.field_kinds:
            if to_camel(attr) == name:
                return attr
        return None

    def kind_of(self, field: str) -> Optional[FieldKind]:
        attr = self.resolve_field(field)
        return self.field_kinds.get(attr) if attr else None

    def build_record(self, data: Any) -> GridRecord:
        """Validate a wire/cache dict (or an existing record) into this dataset's type."""
        if isinstance(data, self.record_type):
            return data
        if isinstance(data, GridRecord):
            data = data.model_dump()
        return self.record_type.model_validate(data)

    def default_records(self) -> list[GridRecord]:
        return [self.build_record(row) for row in self.defaults]


PROJECTS = DatasetSchema(
    name="projects",
    endpoint="projects",
    cache_key="projectData",
    record_type=ProjectRecord,
    defaults=(
        {
            "srNo": 1,
            "projectName": "ATS Project Web",
            "status": "Completed, In Progress, On Hold",
            "dev": 360000,
            "extra": 0,
            "invest": 1,
            "gettingAmount": 1,
            "yetToBeRecovered": 359999,
        },
        {
            "srNo": 2,
            "projectName": "SOLP Project Web",
            "status": "Completed, In Progress, On Hold",
            "dev": 360000,
            "extra": 22000,
            "invest": 1,
            "gettingAmount": 2000,
            "yetToBeRecovered": 380000,
        },
    ),
)

SUBSCRIPTION_REVENUE = DatasetSchema(
    name="subscription-revenue",
    endpoint="subscription-revenue",
    cache_key="subscriptionRevenueData",
    record_type=SubscriptionRevenueRecord,
    defaults=(
        {
            "srNo": 1,
            "revenueSource": "Basic Plan",
            "subscriptionsAvailed": 0,
            "projectedMonthlyRevenue": 2999,
            "projectedAnnualRevenue": 35988,
            "subscribed": "",
            "profit": 0,
        },
    ),
)

FINANCIAL_SUMMARY = DatasetSchema(
    name="financial-summary",
    endpoint="financial-summary",
    cache_key="financialSummaryData",
    record_type=FinancialSummaryRecord,
    row_level=False,
    recompute_summary=True,
    defaults=(
        {"srNo": 1, "category": "Total Expenses Annual", "amount": 22000},
        {"srNo": 2, "category": "Total Expenses Month", "amount": 2000},
        {"srNo": 3, "category": "Total Development Cost", "amount": 700},
        {"srNo": 4, "category": "Development April25 Expenses", "amount": 0},
        {"srNo": 5, "category": "April25 Profit", "amount": 0},
        {"srNo": 6, "category": "Total Profit 2025", "amount": 0},
    ),
)

DATASETS: dict[str, DatasetSchema] = {
    schema.name: schema
    for schema in (PROJECTS, SUBSCRIPTION_REVENUE, FINANCIAL_SUMMARY)
}


def get_dataset(name: str) -> DatasetSchema:
    """Look up a dataset by name."""
    try:
        return DATASETS[name]
    except KeyError:
        raise KeyError(
            f"Unknown dataset: {name!r} (known: {', '.join(sorted(DATASETS))})"
        ) from None
