"""
Static property tables for every entity class exposed by the connector.

Each entry maps a property name to a space separated list of capability
names. Capability names are parsed into ``Capability`` members when the
registry loads; a typo here is a fatal startup error, not a runtime one.
"""

from typing import Any, Dict

# Mailbox properties as returned by Get-Mailbox; the resolver moves the key to the front
MAILBOX: Dict[str, Any] = {
    "properties": [
        ("DisplayName", "default set"),
        ("Guid", "key default"),
        ("Alias", "default set"),
        ("PrimarySmtpAddress", "default set"),
        ("UserPrincipalName", "default"),
        ("RecipientTypeDetails", "default"),
        ("EmailAddresses", "idm set"),
        ("ExchangeGuid", "idm"),
        ("HiddenFromAddressListsEnabled", "idm set"),
        ("ForwardingSmtpAddress", "idm set"),
        ("DeliverToMailboxAndForward", "idm set"),
        ("IssueWarningQuota", "idm set"),
        ("ProhibitSendQuota", "idm set"),
        ("ProhibitSendReceiveQuota", "idm set"),
        ("LitigationHoldEnabled", "idm set"),
        ("RetentionPolicy", "idm set"),
        ("Office", "idm set"),
        ("CustomAttribute1", "idm set"),
        ("CustomAttribute2", "idm set"),
        ("CustomAttribute3", "idm set"),
        ("CustomAttribute4", "idm set"),
        ("CustomAttribute5", "idm set"),
        ("ArchiveStatus", "idm"),
        ("ArchiveGuid", "idm"),
        ("WhenCreated", "idm"),
        ("WhenChanged", "idm"),
        ("Archive", "enable disable"),
        ("AutoExpandingArchive", "enable"),
        ("PermanentlyDisable", "disable"),
    ],
}

DISTRIBUTION_GROUP: Dict[str, Any] = {
    "properties": [
        ("Guid", "key default"),
        ("Name", "default create set"),
        ("DisplayName", "default create set"),
        ("Alias", "default create set"),
        ("PrimarySmtpAddress", "default create set"),
        ("RecipientTypeDetails", "default"),
        ("GroupType", "idm"),
        ("Type", "create"),
        ("ManagedBy", "idm create set"),
        ("Members", "create"),
        ("Notes", "create"),
        ("MemberJoinRestriction", "idm create set"),
        ("MemberDepartRestriction", "idm create set"),
        ("RequireSenderAuthenticationEnabled", "idm create set"),
        ("HiddenFromAddressListsEnabled", "idm set"),
        ("EmailAddresses", "idm set"),
        ("OrganizationalUnit", "idm create"),
        ("WhenCreated", "idm"),
        ("WhenChanged", "idm"),
    ],
    "mandatory": {"create": ["Name", "Type"]},
}

DISTRIBUTION_GROUP_MEMBER: Dict[str, Any] = {
    "properties": [
        ("Id", "key default"),
        ("Identity", "default add remove"),
        ("Member", "default add remove"),
        ("RecipientType", "default"),
        ("GroupDisplayName", "idm"),
        ("MemberName", "idm"),
        ("MemberPrimarySmtpAddress", "idm"),
        ("BypassSecurityGroupManagerCheck", "add remove"),
    ],
    "derived_key": True,
    "identity_field": "Identity",
    "mandatory": {"add": ["Identity", "Member"], "remove": ["Identity", "Member"]},
}

MAILBOX_PERMISSION: Dict[str, Any] = {
    "properties": [
        ("Id", "key default"),
        ("Identity", "default add remove"),
        ("User", "default add remove"),
        ("AccessRights", "default add remove"),
        ("Deny", "idm add remove"),
        ("InheritanceType", "idm add remove"),
        ("IsInherited", "idm"),
        ("AutoMapping", "add"),
    ],
    "derived_key": True,
    "identity_field": "Identity",
    "mandatory": {
        "add": ["Identity", "User", "AccessRights"],
        "remove": ["Identity", "User", "AccessRights"],
    },
}

RECIPIENT_PERMISSION: Dict[str, Any] = {
    "properties": [
        ("Id", "key default"),
        ("Identity", "default add remove"),
        ("Trustee", "default add remove"),
        ("AccessRights", "default add remove"),
        ("AccessControlType", "idm"),
        ("IsInherited", "idm"),
        ("InheritanceType", "idm"),
    ],
    "derived_key": True,
    "identity_field": "Identity",
    "mandatory": {
        "add": ["Identity", "Trustee", "AccessRights"],
        "remove": ["Identity", "Trustee", "AccessRights"],
    },
}

MAILBOX_AUTO_REPLY_CONFIGURATION: Dict[str, Any] = {
    "properties": [
        ("MailboxGuid", "key default"),
        ("MailboxPrimarySmtpAddress", "default"),
        ("AutoReplyState", "default set"),
        ("InternalMessage", "idm set"),
        ("ExternalMessage", "idm set"),
        ("ExternalAudience", "idm set"),
        ("StartTime", "idm set"),
        ("EndTime", "idm set"),
    ],
}

MAIL_CONTACT: Dict[str, Any] = {
    "properties": [
        ("Guid", "key default"),
        ("Name", "default create set"),
        ("DisplayName", "default create set"),
        ("Alias", "default create set"),
        ("ExternalEmailAddress", "default create set"),
        ("PrimarySmtpAddress", "idm create set"),
        ("FirstName", "create"),
        ("LastName", "create"),
        ("HiddenFromAddressListsEnabled", "idm set"),
        ("CustomAttribute1", "idm set"),
        ("OrganizationalUnit", "idm create"),
        ("WhenCreated", "idm"),
        ("WhenChanged", "idm"),
    ],
    "mandatory": {"create": ["Name", "ExternalEmailAddress"]},
}

ENTITY_TABLES: Dict[str, Dict[str, Any]] = {
    "Mailbox": MAILBOX,
    "DistributionGroup": DISTRIBUTION_GROUP,
    "DistributionGroupMember": DISTRIBUTION_GROUP_MEMBER,
    "MailboxPermission": MAILBOX_PERMISSION,
    "RecipientPermission": RECIPIENT_PERMISSION,
    "MailboxAutoReplyConfiguration": MAILBOX_AUTO_REPLY_CONFIGURATION,
    "MailContact": MAIL_CONTACT,
}
