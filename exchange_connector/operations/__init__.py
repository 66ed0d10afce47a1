"""
Operation catalog.

Maps every orchestrator operation name to its handler.
"""

from typing import Dict, List

from .auto_reply import GetMailboxAutoReplyConfiguration, SetMailboxAutoReplyConfiguration
from .base import (
    BulkReadHandler,
    DependentReadHandler,
    MutationHandler,
    OperationHandler,
    OperationResult,
    ReadHandler,
)
from .distribution_group import (
    AddDistributionGroupMember,
    GetDistributionGroup,
    GetDistributionGroupMember,
    NewDistributionGroup,
    RemoveDistributionGroup,
    RemoveDistributionGroupMember,
    SetDistributionGroup,
)
from .mail_contact import GetMailContact, NewMailContact, RemoveMailContact, SetMailContact
from .mailbox import DisableMailbox, EnableMailbox, GetMailbox, SetMailbox
from .permissions import (
    AddMailboxPermission,
    AddRecipientPermission,
    GetMailboxPermission,
    GetRecipientPermission,
    RemoveMailboxPermission,
    RemoveRecipientPermission,
)

HANDLERS: List[OperationHandler] = [
    GetMailbox(),
    SetMailbox(),
    EnableMailbox(),
    DisableMailbox(),
    GetDistributionGroup(),
    NewDistributionGroup(),
    SetDistributionGroup(),
    RemoveDistributionGroup(),
    GetDistributionGroupMember(),
    AddDistributionGroupMember(),
    RemoveDistributionGroupMember(),
    GetMailboxPermission(),
    AddMailboxPermission(),
    RemoveMailboxPermission(),
    GetRecipientPermission(),
    AddRecipientPermission(),
    RemoveRecipientPermission(),
    GetMailboxAutoReplyConfiguration(),
    SetMailboxAutoReplyConfiguration(),
    GetMailContact(),
    NewMailContact(),
    SetMailContact(),
    RemoveMailContact(),
]

OPERATIONS: Dict[str, OperationHandler] = {handler.name: handler for handler in HANDLERS}

__all__ = [
    "BulkReadHandler",
    "DependentReadHandler",
    "HANDLERS",
    "MutationHandler",
    "OPERATIONS",
    "OperationHandler",
    "OperationResult",
    "ReadHandler",
]
