"""
Tests for Finance Grid models

Test strategy:
1. Unit tests for individual components (models, calculators, validators)
2. Integration tests for flows (with an in-memory remote store)
3. No real network calls in tests (fakes and httpx.MockTransport)
"""

import pytest
from decimal import Decimal

from pydantic import ValidationError

from finance_grid.models import (
    DATASETS,
    FINANCIAL_SUMMARY,
    PROJECTS,
    SUBSCRIPTION_REVENUE,
    FieldKind,
    FinancialSummaryRecord,
    ProjectRecord,
    ProjectStatus,
    SubscriptionRevenueRecord,
    SyncEventBuilder,
    SyncEventType,
    SyncSeverity,
    get_dataset,
)
from finance_grid.models.sync import SyncOperation, SyncOutcome, SyncStatus


class TestRecordModels:
    """Tests for the per-dataset record models."""

    def test_project_record_from_wire(self):
        """Test camelCase wire rows with `_id` identities are accepted."""
        record = ProjectRecord.model_validate({
            "_id": "abc123",
            "srNo": 1,
            "projectName": "ATS Project Web",
            "dev": 360000,
            "gettingAmount": "1",
        })
        assert record.id == "abc123"
        assert record.project_name == "ATS Project Web"
        assert record.dev == Decimal("360000")
        assert record.getting_amount == Decimal("1")

    def test_numeric_identity_is_stringified(self):
        """Test identities arriving as numbers become strings."""
        record = ProjectRecord.model_validate({"id": 42})
        assert record.id == "42"

    def test_missing_identity_gets_temporary_uuid(self):
        """Test records without an identity get a unique temporary one."""
        first = ProjectRecord()
        second = ProjectRecord()
        assert first.id and second.id
        assert first.id != second.id

    def test_blank_amounts_are_zero(self):
        """Test null and empty-string amounts load as zero."""
        record = ProjectRecord.model_validate({"dev": None, "extra": ""})
        assert record.dev == Decimal("0")
        assert record.extra == Decimal("0")

    def test_null_text_and_ordinal_load_as_blank(self):
        """Test null descriptive fields and srNo don't reject the row."""
        record = ProjectRecord.model_validate(
            {"srNo": None, "projectName": None, "status": None}
        )
        assert record.sr_no == 0
        assert record.project_name == ""
        assert record.status == ""

    def test_whole_float_amounts_load_without_fraction(self):
        """Test 360000.0 from a JSON snapshot reads back as 360000."""
        record = ProjectRecord.model_validate({"dev": 360000.0, "extra": 12.5})
        assert str(record.dev) == "360000"
        assert str(record.extra) == "12.5"

    def test_status_choices(self):
        """Test the picker offers every status and keeps a legacy value."""
        values = [status.value for status in ProjectStatus]
        assert ProjectStatus.choices() == values
        assert ProjectStatus.choices("Completed") == values
        legacy = "Completed, In Progress, On Hold"
        assert ProjectStatus.choices(legacy) == [legacy] + values

    def test_negative_base_amount_rejected(self):
        """Test base amounts must be nonnegative."""
        with pytest.raises(ValidationError):
            ProjectRecord(dev=Decimal("-1"))

    def test_derived_amount_may_be_negative(self):
        """Test yet-to-be-recovered can go below zero."""
        record = ProjectRecord(yet_to_be_recovered=Decimal("-500"))
        assert record.yet_to_be_recovered == Decimal("-500")

    def test_subscription_count_must_be_whole(self):
        """Test subscriptions availed is an integer field."""
        with pytest.raises(ValidationError):
            SubscriptionRevenueRecord(subscriptions_availed="1.5")

    def test_to_wire_uses_camel_case_and_numbers(self):
        """Test the wire form is camelCase with JSON numbers for amounts."""
        record = ProjectRecord(id="x", sr_no=1, dev=Decimal("10.50"))
        wire = record.to_wire()
        assert wire["id"] == "x"
        assert wire["srNo"] == 1
        assert wire["dev"] == 10.5
        assert "yetToBeRecovered" in wire

    def test_to_wire_can_omit_identity(self):
        """Test payloads sent to the remote store carry no identity."""
        wire = ProjectRecord(id="x").to_wire(include_identity=False)
        assert "id" not in wire
        assert "_id" not in wire

    def test_status_kept_verbatim(self):
        """Test status values outside the offered choices are preserved."""
        record = ProjectRecord(status="Completed, In Progress, On Hold")
        assert record.status == "Completed, In Progress, On Hold"

    def test_summary_record_allows_negative_amount(self):
        """Test profit lines can be negative."""
        record = FinancialSummaryRecord(category="April25 Profit", amount=Decimal("-2000"))
        assert record.amount == Decimal("-2000")


class TestFieldKinds:
    """Tests for field kind classification."""

    def test_derived_field_not_editable(self):
        """Test the derived field is numeric but never editable."""
        assert FieldKind.DERIVED.is_numeric
        assert not FieldKind.DERIVED.is_editable

    def test_store_managed_fields_not_editable(self):
        """Test identity and ordinal are not editable."""
        assert not FieldKind.IDENTITY.is_editable
        assert not FieldKind.ORDINAL.is_editable

    def test_descriptive_kinds(self):
        """Test text and status are descriptive."""
        assert FieldKind.TEXT.is_descriptive
        assert FieldKind.STATUS.is_descriptive
        assert not FieldKind.AMOUNT.is_descriptive


class TestDatasets:
    """Tests for dataset definitions."""

    def test_all_datasets_registered(self):
        """Test the three datasets are registered by name."""
        assert set(DATASETS) == {"projects", "subscription-revenue", "financial-summary"}

    def test_get_unknown_dataset_raises(self):
        """Test looking up an unknown dataset fails loudly."""
        with pytest.raises(KeyError):
            get_dataset("invoices")

    def test_cache_keys(self):
        """Test each dataset has its own cache key."""
        assert PROJECTS.cache_key == "projectData"
        assert SUBSCRIPTION_REVENUE.cache_key == "subscriptionRevenueData"
        assert FINANCIAL_SUMMARY.cache_key == "financialSummaryData"

    def test_resolve_field_accepts_wire_and_attribute_names(self):
        """Test field lookup by camelCase or snake_case name."""
        assert PROJECTS.resolve_field("gettingAmount") == "getting_amount"
        assert PROJECTS.resolve_field("getting_amount") == "getting_amount"
        assert PROJECTS.resolve_field("nope") is None

    def test_derived_fields(self):
        """Test each dataset's derived field."""
        assert PROJECTS.derived_field == "yet_to_be_recovered"
        assert SUBSCRIPTION_REVENUE.derived_field == "projected_annual_revenue"
        assert FINANCIAL_SUMMARY.derived_field is None

    def test_numeric_fields_include_derived(self):
        """Test totals cover the derived field too."""
        assert PROJECTS.numeric_fields == [
            "dev", "extra", "invest", "getting_amount", "yet_to_be_recovered"
        ]

    def test_project_defaults(self):
        """Test the two project seed rows keep their literal values."""
        records = PROJECTS.default_records()
        assert [r.project_name for r in records] == ["ATS Project Web", "SOLP Project Web"]
        assert records[0].yet_to_be_recovered == Decimal("359999")
        assert records[1].yet_to_be_recovered == Decimal("380000")

    def test_summary_defaults(self):
        """Test the financial summary has six rows, and no row-level endpoints."""
        records = FINANCIAL_SUMMARY.default_records()
        assert len(records) == 6
        assert records[0].category == "Total Expenses Annual"
        assert not FINANCIAL_SUMMARY.row_level


class TestSyncModels:
    """Tests for sync outcome and event models."""

    def test_outcome_succeeded(self):
        """Test which statuses count as success."""
        assert SyncOutcome(operation=SyncOperation.CREATE, status=SyncStatus.OFFLINE).succeeded
        assert SyncOutcome(operation=SyncOperation.CREATE, status=SyncStatus.LOCAL_ONLY).succeeded
        assert not SyncOutcome(
            operation=SyncOperation.CREATE, status=SyncStatus.ROLLED_BACK
        ).succeeded

    def test_rolled_back_event_is_an_error(self):
        """Test rollback events are logged at error severity."""
        event = SyncEventBuilder.rolled_back("projects", "create", "tmp-1", "boom")
        assert event.event_type == SyncEventType.ROLLED_BACK
        assert event.severity == SyncSeverity.ERROR
        assert event.error_message == "boom"

    def test_event_to_log_dict(self):
        """Test conversion to a structured log dict."""
        event = SyncEventBuilder.dataset_loaded("projects", "cache", 2)
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "dataset_loaded"
        assert log_dict["dataset"] == "projects"
        assert log_dict["details"] == {"source": "cache", "record_count": 2}
