import io
import json
from datetime import datetime, timezone

import pytest

from reqlog.observability.context import (
    CORRELATION_ID,
    EMPTY_CONTEXT,
    REQUEST_METHOD,
    REQUEST_PATH,
    REQUEST_USER_AGENT,
    RequestContext,
)
from reqlog.observability.context_handler import META_GROUP_KEY, ContextHandler, metadata_group
from reqlog.observability.handlers import JSONHandler
from reqlog.observability.logger import Logger
from reqlog.observability.records import Attr, Group, Level, Record


FULL_CONTEXT = (
    RequestContext()
    .put(CORRELATION_ID, "cid-1")
    .put(REQUEST_PATH, "/get_customer")
    .put(REQUEST_METHOD, "GET")
    .put(REQUEST_USER_AGENT, "test-agent")
)


class RecordingHandler:
    def __init__(self, level: Level = Level.INFO, fail: bool = False) -> None:
        self.level = level
        self.fail = fail
        self.records: list[Record] = []
        self.derived_with: list = []

    def is_enabled(self, ctx, level):
        return level >= self.level

    def handle(self, ctx, record):
        if self.fail:
            raise OSError("disk full")
        self.records.append(record)

    def with_attrs(self, attrs):
        child = RecordingHandler(self.level, self.fail)
        child.derived_with = [*self.derived_with, ("attrs", list(attrs))]
        return child

    def with_group(self, name):
        child = RecordingHandler(self.level, self.fail)
        child.derived_with = [*self.derived_with, ("group", name)]
        return child


def _record(*attrs: Attr) -> Record:
    return Record(time=datetime.now(timezone.utc), level=Level.INFO, message="m", attrs=attrs)


def _meta(record: Record) -> dict[str, str]:
    attr = record.attrs[-1]
    assert attr.key == META_GROUP_KEY
    return {a.key: a.value for a in attr.value.attrs}


def test_metadata_group_defaults_every_key_to_empty_string() -> None:
    attr = metadata_group(EMPTY_CONTEXT)
    assert attr.key == "meta_information"
    assert attr.value == Group(
        (
            Attr("correlation_id", ""),
            Attr("request_method", ""),
            Attr("request_path", ""),
            Attr("request_user_agent", ""),
        )
    )


def test_partially_populated_context_reads_missing_fields_as_empty() -> None:
    inner = RecordingHandler()
    ContextHandler(inner).handle(RequestContext().put(CORRELATION_ID, "cid-1"), _record())

    assert _meta(inner.records[0]) == {
        "correlation_id": "cid-1",
        "request_method": "",
        "request_path": "",
        "request_user_agent": "",
    }


def test_group_is_appended_after_record_attributes() -> None:
    inner = RecordingHandler()
    ContextHandler(inner).handle(FULL_CONTEXT, _record(Attr("customer", "c1"), Attr("n", 2)))

    (record,) = inner.records
    assert [a.key for a in record.attrs] == ["customer", "n", META_GROUP_KEY]
    assert _meta(record)["request_user_agent"] == "test-agent"


def test_is_enabled_delegates_to_wrapped_sink() -> None:
    handler = ContextHandler(RecordingHandler(level=Level.ERROR))
    assert not handler.is_enabled(FULL_CONTEXT, Level.WARNING)
    assert handler.is_enabled(FULL_CONTEXT, Level.ERROR)


def test_derived_handlers_stay_wrapped() -> None:
    handler = ContextHandler(RecordingHandler())

    with_attrs = handler.with_attrs([Attr("service", "api")])
    with_group = handler.with_group("http")

    assert isinstance(with_attrs, ContextHandler)
    assert isinstance(with_group, ContextHandler)
    assert with_attrs.inner.derived_with == [("attrs", [Attr("service", "api")])]
    assert with_group.inner.derived_with == [("group", "http")]

    with_attrs.handle(FULL_CONTEXT, _record())
    assert _meta(with_attrs.inner.records[0])["correlation_id"] == "cid-1"


def test_sink_failures_propagate_unchanged() -> None:
    handler = ContextHandler(RecordingHandler(fail=True))
    with pytest.raises(OSError, match="disk full"):
        handler.handle(FULL_CONTEXT, _record())


def test_bound_logger_output_keeps_meta_information() -> None:
    stream = io.StringIO()
    logger = Logger(ContextHandler(JSONHandler(stream))).bind(service="billing")

    logger.info("bound", ctx=FULL_CONTEXT, amount=10)

    line = json.loads(stream.getvalue())
    assert line["service"] == "billing"
    assert line["amount"] == 10
    assert line["meta_information"] == {
        "correlation_id": "cid-1",
        "request_method": "GET",
        "request_path": "/get_customer",
        "request_user_agent": "test-agent",
    }


def test_grouped_logger_nests_meta_with_the_open_group() -> None:
    stream = io.StringIO()
    logger = Logger(ContextHandler(JSONHandler(stream))).with_group("request")

    logger.info("grouped", ctx=FULL_CONTEXT, status=200)

    line = json.loads(stream.getvalue())
    assert line["request"]["status"] == 200
    assert line["request"]["meta_information"]["request_method"] == "GET"


def test_injected_group_wins_over_caller_field_of_same_name() -> None:
    stream = io.StringIO()
    Logger(ContextHandler(JSONHandler(stream))).info("clash", ctx=FULL_CONTEXT, meta_information="caller")

    line = json.loads(stream.getvalue())
    assert line["meta_information"]["correlation_id"] == "cid-1"
