"""
Permission Vocabularies
=======================

Closed vocabularies of SQL Server permission codes, one per scope. Codes are
the values of the ``type`` column in sys.server_permissions and
sys.database_permissions; names are the permission names as written in
GRANT / REVOKE statements.

Each vocabulary is built once, is immutable, and carries a version so that
entitlement catalogs produced from different releases can be told apart.
The decoder receives the vocabulary for its scope instead of reaching for
module constants.
"""

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterator, Mapping, Tuple

from models.principals import Scope


VOCABULARY_VERSION = "2"

WITH_GRANT_SUFFIX = "-grant"


SERVER_PERMISSIONS = {
    "AAES": "Alter Any Event Session",
    "ADBO": "Administer Bulk Operations",
    "ALAA": "Alter Any Server Audit",
    "ALAG": "Alter Any Availability Group",
    "ALCD": "Alter Any Credential",
    "ALCO": "Alter Any Connection",
    "ALDB": "Alter Any Database",
    "ALES": "Alter Any Event Notification",
    "ALHE": "Alter Any Endpoint",
    "ALLG": "Alter Any Login",
    "ALLS": "Alter Any Linked Server",
    "ALRS": "Alter Resources",
    "ALSR": "Alter Any Server Role",
    "ALSS": "Alter Server State",
    "ALST": "Alter Settings",
    "ALTR": "Alter Trace",
    "AUTH": "Authenticate Server",
    "CADB": "Connect Any Database",
    "CL": "Control Server",
    "CO": "Connect",
    "COSQ": "Connect SQL",
    "CRAC": "Create Availability Group",
    "CRDB": "Create Any Database",
    "CRDE": "Create DDL Event Notification",
    "CRHE": "Create Endpoint",
    "CRSR": "Create Server Role",
    "CRTE": "Create Trace Event Notification",
    "IAL": "Impersonate Any Login",
    "SHDN": "Shutdown",
    "SUS": "Select All User Securables",
    "VW": "View Any Definition",
    "VWAD": "View Any Definition",
    "VWDB": "View Any Database",
    "VWSS": "View Server State",
    "XA": "External Access Assembly",
    "XU": "Unsafe Assembly",
}

DATABASE_PERMISSIONS = {
    "AADS": "Alter Any Database Event Session",
    "AAMK": "Alter Any Mask",
    "AEDS": "Alter Any External Data Source",
    "AEFF": "Alter Any External File Format",
    "AL": "Alter",
    "ALAK": "Alter Any Asymmetric Key",
    "ALAR": "Alter Any Application Role",
    "ALAS": "Alter Any Assembly",
    "ALCF": "Alter Any Certificate",
    "ALDS": "Alter Any Dataspace",
    "ALED": "Alter Any Database Event Notification",
    "ALFT": "Alter Any Fulltext Catalog",
    "ALMT": "Alter Any Message Type",
    "ALRL": "Alter Any Role",
    "ALRT": "Alter Any Route",
    "ALSB": "Alter Any Remote Service Binding",
    "ALSC": "Alter Any Contract",
    "ALSK": "Alter Any Symmetric Key",
    "ALSM": "Alter Any Schema",
    "ALSV": "Alter Any Service",
    "ALTG": "Alter Any Database DDL Trigger",
    "ALUS": "Alter Any User",
    "AUTH": "Authenticate",
    "BADB": "Backup Database",
    "BALO": "Backup Log",
    "CL": "Control",
    "CO": "Connect",
    "CORP": "Connect Replication",
    "CP": "Checkpoint",
    "CRAG": "Create Aggregate",
    "CRAK": "Create Asymmetric Key",
    "CRAS": "Create Assembly",
    "CRCF": "Create Certificate",
    "CRDF": "Create Default",
    "CRED": "Create Database DDL Event Notification",
    "CRFN": "Create Function",
    "CRFT": "Create Fulltext Catalog",
    "CRMT": "Create Message Type",
    "CRPR": "Create Procedure",
    "CRQU": "Create Queue",
    "CRRL": "Create Role",
    "CRRT": "Create Route",
    "CRRU": "Create Rule",
    "CRSB": "Create Remote Service Binding",
    "CRSC": "Create Contract",
    "CRSK": "Create Symmetric Key",
    "CRSN": "Create Synonym",
    "CRSO": "Create Sequence",
    "CRSV": "Create Service",
    "CRTB": "Create Table",
    "CRTY": "Create Type",
    "CRVW": "Create View",
    "CRXS": "Create XML Schema Collection",
    "DL": "Delete",
    "EAES": "Execute Any External Script",
    "EX": "Execute",
    "IN": "Insert",
    "KIDC": "Kill Database Connection",
    "RF": "References",
    "SHPL": "Showplan",
    "SL": "Select",
    "SUQN": "Subscribe Query Notifications",
    "TO": "Take Ownership",
    "UP": "Update",
    "VW": "View Definition",
    "VWCK": "View Any Column Encryption Key Definition",
    "VWCM": "View Any Column Master Key Definition",
    "VWCT": "View Change Tracking",
    "VWDS": "View Database State",
}

SCHEMA_PERMISSIONS = {
    "AL": "Alter",
    "CL": "Control",
    "DL": "Delete",
    "EX": "Execute",
    "IN": "Insert",
    "RF": "References",
    "SL": "Select",
    "TO": "Take Ownership",
    "UP": "Update",
    "VW": "View Definition",
    "VWCT": "View Change Tracking",
}

TABLE_PERMISSIONS = {
    "AL": "Alter",
    "CL": "Control",
    "DL": "Delete",
    "EX": "Execute",
    "IN": "Insert",
    "RC": "Receive",
    "RF": "References",
    "SL": "Select",
    "TO": "Take Ownership",
    "UP": "Update",
    "VW": "View Definition",
    "VWCT": "View Change Tracking",
}

# Permissions a login can be granted on another login.
LOGIN_PERMISSIONS = {
    "AL": "Alter",
    "CL": "Control",
    "IM": "Impersonate",
    "VW": "View Definition",
}


@dataclass(frozen=True)
class PermissionVocabulary:
    """Immutable code -> permission name table for one scope."""
    name: str
    version: str
    permissions: Mapping[str, str]

    def __contains__(self, code) -> bool:
        return code in self.permissions

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.permissions))

    def __len__(self) -> int:
        return len(self.permissions)

    def display_name(self, code: str) -> str:
        return self.permissions[code]

    def statement_name(self, code: str) -> str:
        """Permission name as written in a GRANT statement, e.g. 'VIEW DEFINITION'."""
        try:
            return self.permissions[code].upper()
        except KeyError:
            raise ValueError(f"unknown {self.name} permission code: {code!r}") from None


def _vocabulary(name: str, table) -> PermissionVocabulary:
    return PermissionVocabulary(
        name=name,
        version=VOCABULARY_VERSION,
        permissions=MappingProxyType(dict(table))
    )


@lru_cache(maxsize=None)
def load_vocabularies() -> Mapping[Scope, PermissionVocabulary]:
    """Build the per-scope vocabularies. Cached: built once per process."""
    return MappingProxyType({
        Scope.SERVER: _vocabulary("server", SERVER_PERMISSIONS),
        Scope.DATABASE: _vocabulary("database", DATABASE_PERMISSIONS),
        Scope.SCHEMA: _vocabulary("schema", SCHEMA_PERMISSIONS),
        Scope.TABLE: _vocabulary("table", TABLE_PERMISSIONS),
    })


@lru_cache(maxsize=None)
def login_vocabulary() -> PermissionVocabulary:
    return _vocabulary("login", LOGIN_PERMISSIONS)


def vocabulary_for(scope: Scope) -> PermissionVocabulary:
    return load_vocabularies()[scope]


def entitlement_slug(code: str, with_grant: bool = False) -> str:
    return code + WITH_GRANT_SUFFIX if with_grant else code


def parse_entitlement_slug(slug: str) -> Tuple[str, bool]:
    """
    Split a permission slug into (code, with_grant).

    >>> parse_entitlement_slug("SL-grant")
    ('SL', True)
    """
    if slug.endswith(WITH_GRANT_SUFFIX):
        return slug[:-len(WITH_GRANT_SUFFIX)], True
    return slug, False
