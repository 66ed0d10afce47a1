"""Mailbox operations."""

from ..entity_cache import EntityType
from ..schema import OperationKind
from .base import BulkReadHandler, MutationHandler


class GetMailbox(BulkReadHandler):
    name = "Get-Mailbox"
    class_name = "Mailbox"
    entity_type = EntityType.MAILBOXES
    scoped = True


class SetMailbox(MutationHandler):
    name = "Set-Mailbox"
    class_name = "Mailbox"
    kind = OperationKind.UPDATE


class EnableMailbox(MutationHandler):
    name = "Enable-Mailbox"
    class_name = "Mailbox"
    kind = OperationKind.ENABLE


class DisableMailbox(MutationHandler):
    name = "Disable-Mailbox"
    class_name = "Mailbox"
    kind = OperationKind.DISABLE
