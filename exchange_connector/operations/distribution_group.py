"""Distribution group and group membership operations."""

from typing import Any, Dict, Iterable

from ..entity_cache import EntityType
from ..remote.base import RemoteSessionHandle
from ..schema import OperationKind
from .base import BulkReadHandler, DependentReadHandler, MutationHandler, Record

MEMBER_KEY_FIELDS = ("Identity", "Member")


class GetDistributionGroup(BulkReadHandler):
    name = "Get-DistributionGroup"
    class_name = "DistributionGroup"
    entity_type = EntityType.DISTRIBUTION_GROUPS
    scoped = True


class NewDistributionGroup(MutationHandler):
    name = "New-DistributionGroup"
    class_name = "DistributionGroup"
    kind = OperationKind.CREATE


class SetDistributionGroup(MutationHandler):
    name = "Set-DistributionGroup"
    class_name = "DistributionGroup"
    kind = OperationKind.UPDATE


class RemoveDistributionGroup(MutationHandler):
    name = "Remove-DistributionGroup"
    class_name = "DistributionGroup"
    kind = OperationKind.DELETE


class GetDistributionGroupMember(DependentReadHandler):
    """Expands every cached distribution group into its members."""

    name = "Get-DistributionGroupMember"
    class_name = "DistributionGroupMember"
    source = GetDistributionGroup()
    key_fields = MEMBER_KEY_FIELDS

    def expand(self, remote: RemoteSessionHandle, parent: Record) -> Iterable[Record]:
        members = self.invoke_remote(
            remote, {"Identity": parent.get("Guid"), "ResultSize": "Unlimited"}
        )
        for member in members:
            record: Dict[str, Any] = {
                "Identity": parent.get("Guid"),
                "Member": member.get("Guid"),
                "RecipientType": member.get("RecipientType"),
                "GroupDisplayName": parent.get("DisplayName"),
                "MemberName": member.get("Name"),
                "MemberPrimarySmtpAddress": member.get("PrimarySmtpAddress"),
            }
            yield record


class AddDistributionGroupMember(MutationHandler):
    name = "Add-DistributionGroupMember"
    class_name = "DistributionGroupMember"
    kind = OperationKind.ADD
    key_fields = MEMBER_KEY_FIELDS


class RemoveDistributionGroupMember(MutationHandler):
    name = "Remove-DistributionGroupMember"
    class_name = "DistributionGroupMember"
    kind = OperationKind.REMOVE
    key_fields = MEMBER_KEY_FIELDS
