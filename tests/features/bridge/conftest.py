"""BDD step definitions for the query envelope feature.

Helpers live in steps_helpers.py; this file only registers the steps.
"""

import pytest
from pytest_bdd import given, parsers, then, when

from metagate.adapters.storage.base import seed_records
from metagate.adapters.storage.in_memory import InMemoryDocumentStore
from tests.features.bridge.steps_helpers import (
    BridgeScenarioContext,
    UnreachableStore,
    build_app,
    post_body,
    query_body,
    run_async,
)
from tests.topology import sample_records


@pytest.fixture
def ctx() -> BridgeScenarioContext:
    """Fresh scenario context for each test."""
    return BridgeScenarioContext()


# === Background Steps ===
@given("a document store seeded with the sample topology")
def step_seeded_store(ctx: BridgeScenarioContext) -> None:
    store = InMemoryDocumentStore()
    run_async(seed_records(store, sample_records()))
    ctx.store = store


@given("a gateway over that store")
def step_gateway(ctx: BridgeScenarioContext) -> None:
    build_app(ctx)


@given("the document store is unreachable")
def step_unreachable_store(ctx: BridgeScenarioContext) -> None:
    ctx.store = UnreachableStore()
    build_app(ctx)


# === Request Steps ===
@when(parsers.parse('the client posts the query "{query}"'))
def step_post_query(ctx: BridgeScenarioContext, query: str) -> None:
    run_async(post_body(ctx, query_body(query.replace('\\"', '"'))))


@when(parsers.parse('the client posts the body "{body}"'))
def step_post_body(ctx: BridgeScenarioContext, body: str) -> None:
    run_async(post_body(ctx, body.replace('\\"', '"').encode()))


# === Envelope Steps ===
@then(parsers.parse("the response status is {code:d}"))
def step_status(ctx: BridgeScenarioContext, code: int) -> None:
    assert ctx.status_code == code


@then("the envelope has data")
def step_has_data(ctx: BridgeScenarioContext) -> None:
    assert isinstance(ctx.envelope.get("data"), dict)


@then("the envelope has no data")
def step_no_data(ctx: BridgeScenarioContext) -> None:
    assert "data" not in ctx.envelope


@then("the envelope has no errors")
def step_no_errors(ctx: BridgeScenarioContext) -> None:
    assert "errors" not in ctx.envelope


@then(parsers.parse("the envelope has {count:d} error"))
def step_error_count(ctx: BridgeScenarioContext, count: int) -> None:
    assert len(ctx.envelope["errors"]) == count
    assert all(error["message"] for error in ctx.envelope["errors"])


@then(parsers.parse('the envelope error is "{message}"'))
def step_error_message(ctx: BridgeScenarioContext, message: str) -> None:
    assert ctx.envelope["errors"] == [{"message": message}]


@then(parsers.parse('the data field "{name}" has {count:d} entries'))
def step_field_entries(ctx: BridgeScenarioContext, name: str, count: int) -> None:
    assert len(ctx.envelope["data"][name]) == count


@then(parsers.parse('the data field "{name}" is null'))
def step_field_null(ctx: BridgeScenarioContext, name: str) -> None:
    assert ctx.envelope["data"][name] is None
