"""
Mailbox permission (full access etc.) and recipient permission (Send-As)
operations. Neither record type has a natural key; both are keyed by a
digest of their identifying fields.
"""

from typing import Iterable

from ..remote.base import RemoteSessionHandle
from ..schema import OperationKind
from .base import DependentReadHandler, MutationHandler, Record
from .mailbox import GetMailbox

MAILBOX_PERMISSION_KEY_FIELDS = ("Identity", "User", "AccessRights", "Deny", "InheritanceType")
RECIPIENT_PERMISSION_KEY_FIELDS = ("Identity", "Trustee", "AccessRights", "AccessControlType")
# Values Exchange applies when Add-* omits them, as reported by Get-*
MAILBOX_PERMISSION_KEY_DEFAULTS = {"Deny": False, "InheritanceType": "All"}
RECIPIENT_PERMISSION_KEY_DEFAULTS = {"AccessControlType": "Allow"}


class GetMailboxPermission(DependentReadHandler):
    name = "Get-MailboxPermission"
    class_name = "MailboxPermission"
    source = GetMailbox()
    key_fields = MAILBOX_PERMISSION_KEY_FIELDS
    key_defaults = MAILBOX_PERMISSION_KEY_DEFAULTS

    def expand(self, remote: RemoteSessionHandle, parent: Record) -> Iterable[Record]:
        for permission in self.invoke_remote(remote, {"Identity": parent.get("Guid")}):
            yield {
                "Identity": parent.get("Guid"),
                "User": permission.get("User"),
                "AccessRights": permission.get("AccessRights"),
                "Deny": permission.get("Deny", False),
                "InheritanceType": permission.get("InheritanceType"),
                "IsInherited": permission.get("IsInherited"),
            }


class AddMailboxPermission(MutationHandler):
    name = "Add-MailboxPermission"
    class_name = "MailboxPermission"
    kind = OperationKind.ADD
    key_fields = MAILBOX_PERMISSION_KEY_FIELDS
    key_defaults = MAILBOX_PERMISSION_KEY_DEFAULTS


class RemoveMailboxPermission(MutationHandler):
    name = "Remove-MailboxPermission"
    class_name = "MailboxPermission"
    kind = OperationKind.REMOVE
    key_fields = MAILBOX_PERMISSION_KEY_FIELDS
    key_defaults = MAILBOX_PERMISSION_KEY_DEFAULTS


class GetRecipientPermission(DependentReadHandler):
    name = "Get-RecipientPermission"
    class_name = "RecipientPermission"
    source = GetMailbox()
    key_fields = RECIPIENT_PERMISSION_KEY_FIELDS
    key_defaults = RECIPIENT_PERMISSION_KEY_DEFAULTS

    def expand(self, remote: RemoteSessionHandle, parent: Record) -> Iterable[Record]:
        for permission in self.invoke_remote(remote, {"Identity": parent.get("Guid")}):
            yield {
                "Identity": parent.get("Guid"),
                "Trustee": permission.get("Trustee"),
                "AccessRights": permission.get("AccessRights"),
                "AccessControlType": permission.get("AccessControlType"),
                "IsInherited": permission.get("IsInherited"),
                "InheritanceType": permission.get("InheritanceType"),
            }


class AddRecipientPermission(MutationHandler):
    name = "Add-RecipientPermission"
    class_name = "RecipientPermission"
    kind = OperationKind.ADD
    key_fields = RECIPIENT_PERMISSION_KEY_FIELDS
    key_defaults = RECIPIENT_PERMISSION_KEY_DEFAULTS


class RemoveRecipientPermission(MutationHandler):
    name = "Remove-RecipientPermission"
    class_name = "RecipientPermission"
    kind = OperationKind.REMOVE
    key_fields = RECIPIENT_PERMISSION_KEY_FIELDS
    key_defaults = RECIPIENT_PERMISSION_KEY_DEFAULTS
