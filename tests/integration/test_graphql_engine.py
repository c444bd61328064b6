"""Integration tests for the GraphQL engine over a seeded store."""

from typing import Any

import pytest

from metagate.adapters.engine.graphql import (
    RESOLVERS,
    GraphQLQueryEngine,
    build_metadata_schema,
)
from metagate.core.bridge import RequestBridge
from metagate.core.ids import build_endpoint_id, build_instance_id
from metagate.core.metadata import MetadataStore
from metagate.core.service import MetadataQueryService
from tests.topology import CHECKOUT_ID, MYSQL_ID, PAYMENT_ID

pytestmark = [pytest.mark.engine, pytest.mark.tier(2)]


@pytest.fixture
def bridge(metadata_store: MetadataStore) -> RequestBridge:
    return RequestBridge(GraphQLQueryEngine(MetadataQueryService(metadata_store)))


async def run(
    bridge: RequestBridge, query: str, variables: dict[str, Any] | None = None
) -> dict[str, Any]:
    return (await bridge.execute(query, variables)).to_dict()


class TestSchema:
    """Tests for schema construction."""

    @pytest.mark.tra("Engine.Schema.Resolvers")
    def test_every_query_field_has_a_resolver(self) -> None:
        schema = build_metadata_schema()

        query_type = schema.query_type
        assert query_type is not None
        assert all(field.resolve is not None for field in query_type.fields.values())

    @pytest.mark.tra("Engine.Schema.Resolvers")
    def test_unknown_type_in_table_is_rejected(self) -> None:
        with pytest.raises(KeyError):
            build_metadata_schema({"Nope": {"x": lambda *_: None}})


class TestQueries:
    """Each Query field resolved end to end."""

    @pytest.mark.tra("Engine.Query.ListLayers")
    async def test_list_layers(self, bridge: RequestBridge) -> None:
        body = await run(bridge, "{ listLayers }")

        assert "MESH" in body["data"]["listLayers"]
        assert "UNDEFINED" not in body["data"]["listLayers"]

    @pytest.mark.tra("Engine.Query.ListServices")
    async def test_list_services_merges_layers(self, bridge: RequestBridge) -> None:
        body = await run(bridge, "{ listServices { id name shortName group layers } }")

        assert body == {
            "data": {
                "listServices": [
                    {
                        "id": CHECKOUT_ID,
                        "name": "shop::checkout",
                        "shortName": "checkout",
                        "group": "shop",
                        "layers": ["GENERAL", "MESH"],
                    },
                    {
                        "id": PAYMENT_ID,
                        "name": "payment",
                        "shortName": "payment",
                        "group": "",
                        "layers": ["GENERAL"],
                    },
                    {
                        "id": MYSQL_ID,
                        "name": "mysql:3306",
                        "shortName": "mysql:3306",
                        "group": "",
                        "layers": ["VIRTUAL_DATABASE"],
                    },
                ]
            }
        }

    @pytest.mark.tra("Engine.Query.ListServices")
    async def test_list_services_by_layer_variable(self, bridge: RequestBridge) -> None:
        body = await run(
            bridge,
            "query($layer: String) { listServices(layer: $layer) { name } }",
            {"layer": "VIRTUAL_DATABASE"},
        )

        assert body == {"data": {"listServices": [{"name": "mysql:3306"}]}}

    @pytest.mark.tra("Engine.Query.ListServices")
    async def test_unknown_layer_is_a_field_error(self, bridge: RequestBridge) -> None:
        body = await run(bridge, '{ listServices(layer: "NOPE") { name } }')

        assert body == {"errors": [{"message": "Unknown layer: NOPE"}]}

    @pytest.mark.tra("Engine.Query.GetService")
    async def test_get_service(self, bridge: RequestBridge) -> None:
        body = await run(
            bridge,
            "query($id: String!) { getService(serviceId: $id) { name layers } }",
            {"id": CHECKOUT_ID},
        )

        assert body == {
            "data": {
                "getService": {"name": "shop::checkout", "layers": ["GENERAL", "MESH"]}
            }
        }

    @pytest.mark.tra("Engine.Query.GetService")
    async def test_get_missing_service_is_null(self, bridge: RequestBridge) -> None:
        body = await run(bridge, '{ getService(serviceId: "bm9wZQ==.1") { name } }')

        assert body == {"data": {"getService": None}}

    @pytest.mark.tra("Engine.Query.ListInstances")
    async def test_list_instances_with_duration_variable(
        self, bridge: RequestBridge
    ) -> None:
        query = """
            query($duration: Duration!, $serviceId: ID!) {
                listInstances(duration: $duration, serviceId: $serviceId) {
                    name instanceUUID layer language
                    attributes { key value }
                }
            }
        """
        variables = {
            "duration": {
                "start": "2022-10-17 1345",
                "end": "2022-10-17 1400",
                "step": "MINUTE",
            },
            "serviceId": CHECKOUT_ID,
        }

        body = await run(bridge, query, variables)

        assert body == {
            "data": {
                "listInstances": [
                    {
                        "name": "checkout-1",
                        "instanceUUID": build_instance_id(CHECKOUT_ID, "checkout-1"),
                        "layer": "GENERAL",
                        "language": "JAVA",
                        "attributes": [
                            {"key": "pid", "value": "123"},
                            {"key": "hostname", "value": "node-a"},
                        ],
                    },
                    {
                        "name": "checkout-2",
                        "instanceUUID": build_instance_id(CHECKOUT_ID, "checkout-2"),
                        "layer": "GENERAL",
                        "language": "UNKNOWN",
                        "attributes": [],
                    },
                ]
            }
        }

    @pytest.mark.tra("Engine.Query.ListInstances")
    async def test_list_instances_with_inline_day_step(
        self, bridge: RequestBridge
    ) -> None:
        """A DAY start reaches back to midnight and includes the stale instance."""
        body = await run(
            bridge,
            f"""{{ listInstances(
                duration: {{start: "2022-10-17", end: "2022-10-17", step: DAY}},
                serviceId: "{CHECKOUT_ID}") {{ name }} }}""",
        )

        assert [i["name"] for i in body["data"]["listInstances"]] == [
            "checkout-1",
            "checkout-2",
            "checkout-stale",
        ]

    @pytest.mark.tra("Engine.Query.ListInstances")
    async def test_badly_formatted_duration_is_an_error(
        self, bridge: RequestBridge
    ) -> None:
        body = await run(
            bridge,
            f"""{{ listInstances(
                duration: {{start: "yesterday", end: "today", step: MINUTE}},
                serviceId: "{CHECKOUT_ID}") {{ name }} }}""",
        )

        assert len(body["errors"]) == 1
        assert "yesterday" in body["errors"][0]["message"]

    @pytest.mark.tra("Engine.Query.GetInstance")
    async def test_get_instance(self, bridge: RequestBridge) -> None:
        instance_id = build_instance_id(PAYMENT_ID, "payment-1")

        body = await run(
            bridge,
            "query($id: String!) { getInstance(instanceId: $id) { id language } }",
            {"id": instance_id},
        )

        assert body == {
            "data": {"getInstance": {"id": instance_id, "language": "PYTHON"}}
        }

    @pytest.mark.tra("Engine.Query.GetInstance")
    async def test_get_missing_instance_is_null(self, bridge: RequestBridge) -> None:
        body = await run(bridge, '{ getInstance(instanceId: "missing") { id } }')

        assert body == {"data": {"getInstance": None}}

    @pytest.mark.tra("Engine.Query.FindEndpoint")
    async def test_find_endpoint(self, bridge: RequestBridge) -> None:
        body = await run(
            bridge,
            f'{{ findEndpoint(keyword: "checkout", serviceId: "{CHECKOUT_ID}", '
            f"limit: 10) {{ id name }} }}",
        )

        assert body == {
            "data": {
                "findEndpoint": [
                    {
                        "id": build_endpoint_id(CHECKOUT_ID, "POST /cart/checkout"),
                        "name": "POST /cart/checkout",
                    }
                ]
            }
        }

    @pytest.mark.tra("Engine.Query.FindEndpoint")
    async def test_find_endpoint_without_keyword(self, bridge: RequestBridge) -> None:
        query = f'{{ findEndpoint(serviceId: "{CHECKOUT_ID}", limit: 2) {{ name }} }}'

        body = await run(bridge, query)

        assert body == {
            "data": {
                "findEndpoint": [{"name": "POST /cart/checkout"}, {"name": "GET /cart"}]
            }
        }


class TestEngineErrors:
    """Engine-reported failures reach the envelope as errors."""

    @pytest.mark.tra("Engine.Errors.Syntax")
    async def test_syntax_error_has_no_data(self, bridge: RequestBridge) -> None:
        body = await run(bridge, "{ listServices { name ")

        assert "data" not in body
        assert len(body["errors"]) == 1
        assert body["errors"][0]["message"].startswith("Syntax Error")

    @pytest.mark.tra("Engine.Errors.Validation")
    async def test_unknown_field_is_a_validation_error(
        self, bridge: RequestBridge
    ) -> None:
        body = await run(bridge, "{ listPlanets }")

        assert "data" not in body
        assert "listPlanets" in body["errors"][0]["message"]

    @pytest.mark.tra("Engine.Errors.Partial")
    async def test_nullable_field_failure_keeps_sibling_data(
        self, metadata_store: MetadataStore
    ) -> None:
        async def broken(*_args: Any, **_kwargs: Any) -> None:
            raise RuntimeError("service lookup failed")

        resolvers = {
            type_name: dict(fields) for type_name, fields in RESOLVERS.items()
        }
        resolvers["Query"]["getService"] = broken
        engine = GraphQLQueryEngine(
            MetadataQueryService(metadata_store), build_metadata_schema(resolvers)
        )

        body = await run(
            RequestBridge(engine),
            '{ listLayers getService(serviceId: "x") { name } }',
        )

        assert "GENERAL" in body["data"]["listLayers"]
        assert body["data"]["getService"] is None
        assert body["errors"] == [{"message": "service lookup failed"}]

    @pytest.mark.tra("Engine.Errors.NonNull")
    async def test_non_null_field_failure_nulls_data(
        self, bridge: RequestBridge
    ) -> None:
        body = await run(bridge, '{ listLayers listServices(layer: "NOPE") { name } }')

        assert "data" not in body
        assert body["errors"] == [{"message": "Unknown layer: NOPE"}]
