"""Tests for record validation against the schema registry."""

from datetime import timedelta

import pytest
from streamrecord.errors import (
    MissingRequiredFieldError,
    NamespaceViolationError,
    RecordRejectedError,
    SchemaNotFoundError,
    TypeMismatchError,
)
from streamrecord.models.record import Record
from streamrecord.models.streams import FieldType
from streamrecord.records.validator import matches_type

NOW = "20250114T162059Z"


def _record(stream, fields=None, **kwargs):
    kwargs.setdefault("observed_time", NOW)
    kwargs.setdefault("version", "v1")
    return Record(stream=stream, fields=fields or {}, **kwargs)


class TestValidRecords:

    def test_built_record_is_valid(self, builder, validator):
        record = builder.build(
            "request_http", "v1", {"trace_id": "123"},
            {"method": "GET", "status": 200, "path": "/health", "latency": "5ms"},
        )
        result = validator.validate(record)
        assert result.ok
        result.raise_for_errors()

    def test_event_with_object_data(self, builder, validator):
        record = builder.build(
            "event", "v1", None,
            {"id": "e1", "type": "user.added", "aggregate_id": "a1",
             "aggregate_type": "user", "data": {"email": "a@b.c"}},
        )
        assert validator.validate(record).ok

    def test_runtime_bag_unvalidated(self, builder, validator):
        record = builder.build(
            "runtime_version", "v1", None,
            {"severity": "info", "message": "m",
             "attributes": {"anything": object(), "nested": {"x": 1}}},
        )
        assert validator.validate(record).ok


class TestRequiredFields:

    def test_missing_event_id(self, builder, validator):
        record = builder.build(
            "event", "v1", None,
            {"type": "user.added", "aggregate_id": "a1", "aggregate_type": "user"},
        )
        result = validator.validate(record)
        assert not result.ok
        assert result.errors == [MissingRequiredFieldError("event_id")]

    def test_all_missing_reported(self, validator):
        result = validator.validate(_record("event"))
        names = sorted(e.field_name for e in result.errors)
        assert names == [
            "event_aggregate_id", "event_aggregate_type", "event_id", "event_type",
        ]
        assert all(isinstance(e, MissingRequiredFieldError) for e in result.errors)

    def test_null_counts_as_missing(self, validator):
        result = validator.validate(
            _record("action_trigger_event", {"action_trigger_event_id": None})
        )
        assert result.errors == [MissingRequiredFieldError("action_trigger_event_id")]

    def test_missing_observed_time(self, validator):
        result = validator.validate(_record("notification", observed_time=""))
        assert MissingRequiredFieldError("observed_time") in result.errors

    def test_required_satisfied_by_enrichment(self, validator):
        record = _record(
            "action_trigger_function", enrichment={"action_trigger_function_name": "fn"}
        )
        assert validator.validate(record).ok


class TestTypes:

    def test_type_mismatches_accumulate(self, validator):
        record = _record(
            "request_http",
            {
                "request_http_path": "/",
                "request_http_method": "GET",
                "request_http_status": "200",
                "request_is_authenticated": "yes",
                "request_latency": "soon",
            },
        )
        result = validator.validate(record)
        assert [e.field_name for e in result.errors] == [
            "request_http_status", "request_is_authenticated", "request_latency",
        ]
        first = result.errors[0]
        assert isinstance(first, TypeMismatchError)
        assert first.expected == "integer"
        assert first.actual == "str"

    def test_bad_observed_time(self, validator):
        result = validator.validate(_record("notification", observed_time="2025-01-14"))
        assert result.errors == [
            TypeMismatchError("observed_time", FieldType.TIMESTAMP, "2025-01-14")
        ]

    def test_enrichment_must_be_primitive(self, validator):
        result = validator.validate(_record("notification", enrichment={"tags": ["a"]}))
        assert [e.field_name for e in result.errors] == ["tags"]

    @pytest.mark.parametrize("ftype,good,bad", [
        (FieldType.STRING, "x", 1),
        (FieldType.INTEGER, 1, True),
        (FieldType.BOOLEAN, False, 0),
        (FieldType.DURATION, timedelta(seconds=1), "1s"),
        (FieldType.TIMESTAMP, NOW, "now"),
        (FieldType.OBJECT, {"a": 1}, "{}"),
    ])
    def test_matches_type(self, ftype, good, bad):
        assert matches_type(ftype, good)
        assert not matches_type(ftype, bad)


class TestNamespaceDiscipline:

    def test_foreign_field_in_record(self, validator):
        record = _record(
            "event",
            {"event_id": "1", "event_type": "t", "event_aggregate_id": "a",
             "event_aggregate_type": "x", "action_targetcall_status": 200},
        )
        result = validator.validate(record)
        assert result.errors == [NamespaceViolationError("action_targetcall_status", "event")]

    def test_undeclared_own_field(self, validator):
        record = _record("notification", {"notification_channel": "mail"})
        assert isinstance(validator.validate(record).errors[0], NamespaceViolationError)

    def test_attributes_without_bag(self, validator):
        record = _record(
            "notification", attributes={"x": 1}, open_bag="runtime_attributes_"
        )
        result = validator.validate(record)
        assert result.errors == [NamespaceViolationError("runtime_attributes_x", "notification")]


class TestResult:

    def test_raise_for_errors(self, validator):
        result = validator.validate(_record("event"))
        with pytest.raises(RecordRejectedError) as exc_info:
            result.raise_for_errors()
        assert len(exc_info.value.errors) == 4

    def test_unregistered_discriminator(self, validator):
        with pytest.raises(SchemaNotFoundError):
            validator.validate(_record("event", version="v9"))

    def test_validation_is_pure(self, builder, validator):
        record = builder.build("event", "v1", None, {"id": "1"})
        before = record.model_dump()
        first = validator.validate(record)
        second = validator.validate(record)
        assert first.errors == second.errors
        assert record.model_dump() == before
