"""
Tests for read picklists and mutation parameter contracts.
"""

import pytest

from exchange_connector.exceptions import (
    MissingMandatoryParameterError,
    ProhibitedParameterError,
)
from exchange_connector.resolver import FILTER_FIELD, ParameterAllowanceResolver
from exchange_connector.schema import Allowance, OperationKind, SchemaRegistry, Semantics


@pytest.fixture
def resolver():
    return ParameterAllowanceResolver(SchemaRegistry())


class TestReadMetadata:
    def test_default_selection_key_first(self, resolver):
        picklist = resolver.resolve_read_metadata("Mailbox")
        assert picklist.default_selection == (
            "Guid",
            "DisplayName",
            "Alias",
            "PrimarySmtpAddress",
            "UserPrincipalName",
            "RecipientTypeDetails",
        )

    def test_fields_are_key_then_readable(self, resolver):
        picklist = resolver.resolve_read_metadata("Mailbox")
        names = [f.name for f in picklist.fields]
        assert names[0] == "Guid"
        assert "ExchangeGuid" in names
        # Write-only fields are not offered for reads
        assert "Archive" not in names
        assert "PermanentlyDisable" not in names
        assert FILTER_FIELD not in names

    def test_filter_field_offered(self, resolver):
        picklist = resolver.resolve_read_metadata("Mailbox", can_filter=True)
        assert picklist.fields[-1].name == FILTER_FIELD
        assert picklist.to_dict()["filter"] == FILTER_FIELD

    def test_to_dict(self, resolver):
        data = resolver.resolve_read_metadata("DistributionGroupMember").to_dict()
        assert data["semantics"] == "read"
        assert data["class"] == "DistributionGroupMember"
        assert data["default"][0] == "Id"
        assert data["filter"] is None

    def test_metadata_is_deterministic(self, resolver):
        first = resolver.resolve_read_metadata("MailContact").to_dict()
        second = ParameterAllowanceResolver(SchemaRegistry()).resolve_read_metadata(
            "MailContact"
        ).to_dict()
        assert first == second


class TestReadSelection:
    def test_empty_request_uses_defaults(self, resolver):
        assert resolver.resolve_read_selection("Mailbox", []) == resolver.resolve_read_selection(
            "Mailbox", None
        )
        assert resolver.resolve_read_selection("Mailbox", [])[0] == "Guid"

    def test_key_prepended_once(self, resolver):
        selection = resolver.resolve_read_selection(
            "Mailbox", ["Office", "Guid", "Alias", "Office"]
        )
        assert selection == ("Guid", "Office", "Alias")

    def test_unreadable_property_rejected(self, resolver):
        with pytest.raises(ProhibitedParameterError) as exc_info:
            resolver.resolve_read_selection("Mailbox", ["Alias", "Archive", "Nope"])
        assert exc_info.value.parameters == ["Archive", "Nope"]


class TestOperationContract:
    def test_update_contract(self, resolver):
        contract = resolver.resolve_operation_contract("Mailbox", OperationKind.UPDATE)
        assert contract.semantics is Semantics.UPDATE
        assert contract.parameters[0].name == "Guid"
        assert contract.allowance_of("Guid") is Allowance.MANDATORY
        assert contract.allowance_of("DisplayName") is Allowance.OPTIONAL
        assert contract.allowance_of("UserPrincipalName") is Allowance.PROHIBITED
        assert contract.allowance_of("Archive") is Allowance.PROHIBITED

    def test_unknown_field_prohibited(self, resolver):
        contract = resolver.resolve_operation_contract("Mailbox", OperationKind.UPDATE)
        assert contract.allowance_of("NotAField") is Allowance.PROHIBITED

    def test_every_field_classified(self, resolver):
        registry = SchemaRegistry()
        for class_name in registry.class_names():
            names = registry.get_schema(class_name).property_names
            for kind in OperationKind:
                contract = resolver.resolve_operation_contract(class_name, kind)
                assert sorted(p.name for p in contract.parameters) == sorted(names)

    def test_create_key_prohibited_and_overrides_mandatory(self, resolver):
        contract = resolver.resolve_operation_contract(
            "DistributionGroup", OperationKind.CREATE
        )
        assert contract.semantics is Semantics.CREATE
        assert contract.allowance_of("Guid") is Allowance.PROHIBITED
        assert contract.names_with(Allowance.MANDATORY) == ("Name", "Type")
        assert contract.allowance_of("ManagedBy") is Allowance.OPTIONAL
        assert contract.allowance_of("GroupType") is Allowance.PROHIBITED

    def test_delete_contract_only_key(self, resolver):
        contract = resolver.resolve_operation_contract(
            "DistributionGroup", OperationKind.DELETE
        )
        assert contract.semantics is Semantics.DELETE
        assert contract.names_with(Allowance.MANDATORY) == ("Guid",)
        assert contract.names_with(Allowance.OPTIONAL) == ()

    def test_enable_disable_are_updates(self, resolver):
        enable = resolver.resolve_operation_contract("Mailbox", OperationKind.ENABLE)
        disable = resolver.resolve_operation_contract("Mailbox", OperationKind.DISABLE)
        assert enable.semantics is Semantics.UPDATE
        assert disable.semantics is Semantics.UPDATE
        assert enable.names_with(Allowance.OPTIONAL) == ("Archive", "AutoExpandingArchive")
        assert disable.names_with(Allowance.OPTIONAL) == ("Archive", "PermanentlyDisable")

    def test_derived_key_prohibited(self, resolver):
        contract = resolver.resolve_operation_contract(
            "MailboxPermission", OperationKind.REMOVE
        )
        assert contract.semantics is Semantics.DELETE
        assert contract.allowance_of("Id") is Allowance.PROHIBITED
        assert contract.names_with(Allowance.MANDATORY) == (
            "Identity",
            "User",
            "AccessRights",
        )
        assert contract.allowance_of("AutoMapping") is Allowance.PROHIBITED

    def test_contract_to_dict(self, resolver):
        data = resolver.resolve_operation_contract(
            "DistributionGroupMember", OperationKind.ADD
        ).to_dict()
        assert data["semantics"] == "create"
        assert data["parameters"][0] == {"name": "Id", "allowance": "prohibited"}


class TestValidate:
    def test_update_with_non_set_field(self, resolver):
        with pytest.raises(ProhibitedParameterError) as exc_info:
            resolver.validate(
                "Mailbox",
                OperationKind.UPDATE,
                {"Guid": "g-1", "UserPrincipalName": "x@contoso.com"},
            )
        assert exc_info.value.parameters == ["UserPrincipalName"]
        assert exc_info.value.context["operation"] == "update"

    def test_prohibited_reported_before_missing(self, resolver):
        with pytest.raises(ProhibitedParameterError):
            resolver.validate("Mailbox", OperationKind.UPDATE, {"ExchangeGuid": "x"})

    def test_missing_key(self, resolver):
        with pytest.raises(MissingMandatoryParameterError) as exc_info:
            resolver.validate("Mailbox", OperationKind.UPDATE, {"DisplayName": "Adele"})
        assert exc_info.value.parameters == ["Guid"]

    def test_empty_string_counts_as_missing(self, resolver):
        with pytest.raises(MissingMandatoryParameterError):
            resolver.validate(
                "DistributionGroup", OperationKind.CREATE, {"Name": "", "Type": "Security"}
            )

    def test_natural_key_parameter_set(self, resolver):
        pset = resolver.validate(
            "Mailbox", OperationKind.UPDATE, {"Guid": "g-1", "Office": "18/2111"}
        )
        assert pset.identity_field == "Guid"
        assert pset.identity == "g-1"
        assert pset.values == {"Office": "18/2111"}
        assert pset.as_record() == {"Guid": "g-1", "Office": "18/2111"}

    def test_create_has_no_identity(self, resolver):
        pset = resolver.validate(
            "DistributionGroup", OperationKind.CREATE, {"Name": "Sales", "Type": "Distribution"}
        )
        assert pset.identity is None
        assert pset.values == {"Name": "Sales", "Type": "Distribution"}

    def test_derived_key_uses_identity_field(self, resolver):
        pset = resolver.validate(
            "DistributionGroupMember",
            OperationKind.ADD,
            {"Identity": "group-1", "Member": "user-1"},
        )
        assert pset.identity_field == "Identity"
        assert pset.identity == "group-1"
        assert pset.values == {"Member": "user-1"}
