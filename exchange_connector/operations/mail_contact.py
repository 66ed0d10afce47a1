"""Mail contact operations."""

from ..schema import OperationKind
from .base import MutationHandler, ReadHandler


class GetMailContact(ReadHandler):
    name = "Get-MailContact"
    class_name = "MailContact"
    scoped = True


class NewMailContact(MutationHandler):
    name = "New-MailContact"
    class_name = "MailContact"
    kind = OperationKind.CREATE


class SetMailContact(MutationHandler):
    name = "Set-MailContact"
    class_name = "MailContact"
    kind = OperationKind.UPDATE


class RemoveMailContact(MutationHandler):
    name = "Remove-MailContact"
    class_name = "MailContact"
    kind = OperationKind.DELETE
