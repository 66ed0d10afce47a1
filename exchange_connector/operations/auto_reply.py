"""Automatic reply (out of office) configuration of every cached mailbox."""

from typing import Iterable

from ..remote.base import RemoteSessionHandle
from ..schema import OperationKind
from .base import DependentReadHandler, MutationHandler, Record
from .mailbox import GetMailbox

_SETTINGS = (
    "AutoReplyState",
    "InternalMessage",
    "ExternalMessage",
    "ExternalAudience",
    "StartTime",
    "EndTime",
)


class GetMailboxAutoReplyConfiguration(DependentReadHandler):
    name = "Get-MailboxAutoReplyConfiguration"
    class_name = "MailboxAutoReplyConfiguration"
    source = GetMailbox()

    def expand(self, remote: RemoteSessionHandle, parent: Record) -> Iterable[Record]:
        for configuration in self.invoke_remote(remote, {"Identity": parent.get("Guid")}):
            record = {
                "MailboxGuid": parent.get("Guid"),
                "MailboxPrimarySmtpAddress": parent.get("PrimarySmtpAddress"),
            }
            record.update((name, configuration.get(name)) for name in _SETTINGS)
            yield record


class SetMailboxAutoReplyConfiguration(MutationHandler):
    name = "Set-MailboxAutoReplyConfiguration"
    class_name = "MailboxAutoReplyConfiguration"
    kind = OperationKind.UPDATE
