"""
Tests for the orchestrator boundary.
"""

import pytest

from exchange_connector import Connector, OperationResult
from exchange_connector.entity_cache import EntityType
from exchange_connector.exceptions import UnknownOperationError
from exchange_connector.operations import HANDLERS


@pytest.fixture
def connector(context, spy_provider, sample_groups):
    spy_provider.responses["Get-DistributionGroup"] = sample_groups
    return Connector(context)


class TestConnector:
    def test_operation_names_unique(self, connector):
        names = [handler.name for handler in connector.operations()]
        assert len(names) == len(set(names)) == len(HANDLERS)

    def test_every_operation_class_registered(self, connector):
        for handler in connector.operations():
            connector.context.registry.get_schema(handler.class_name)

    def test_unknown_operation(self, connector):
        with pytest.raises(UnknownOperationError) as exc_info:
            connector.handler("Get-PublicFolder")
        assert exc_info.value.context["operation"] == "Get-PublicFolder"

    def test_invoke_get_meta(self, connector, spy_provider):
        meta = connector.invoke("New-MailContact", get_meta=True)
        assert meta["semantics"] == "create"
        assert spy_provider.opened == []

    def test_invoke_execute(self, connector, system_params):
        result = connector.invoke("Get-DistributionGroup", system_params, {})
        assert isinstance(result, OperationResult)
        assert [r["Guid"] for r in result.unwrap()] == [
            "a7c2e3d4-0000-4000-8000-000000000010",
            "a7c2e3d4-0000-4000-8000-000000000011",
        ]

    def test_refresh_cache(self, connector, system_params):
        connector.execute("Get-DistributionGroup", system_params)
        assert connector.context.cache.is_filled(EntityType.DISTRIBUTION_GROUPS)
        connector.refresh_cache()
        assert not connector.context.cache.is_filled(EntityType.DISTRIBUTION_GROUPS)

    def test_unload(self, connector, spy_provider, system_params):
        connector.execute("Get-DistributionGroup", system_params)
        connector.unload()
        assert spy_provider.closed == spy_provider.opened
        assert not connector.context.session_manager.is_connected
        assert not connector.context.cache.is_filled(EntityType.DISTRIBUTION_GROUPS)

    def test_unload_twice(self, connector, spy_provider, system_params):
        connector.execute("Get-DistributionGroup", system_params)
        connector.unload()
        connector.unload()
        assert len(spy_provider.closed) == 1
