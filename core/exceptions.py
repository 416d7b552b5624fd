"""Exceptions raised by the access inventory core and its SQL Server client."""


class AccessInventoryError(Exception):
    """Base class for every error raised by this package."""


class DecodeError(AccessInventoryError, ValueError):
    """A resume token could not be decoded.

    Raised for structurally invalid traversal tokens and for pager tokens
    that are not offsets. The token came from the caller, so there is no
    sensible recovery: the error is surfaced as is and never silently reset
    to a first-page request.
    """


class UpstreamFetchError(AccessInventoryError):
    """The database could not answer a catalog query.

    Fatal for the current call. The caller's previous token is still the
    correct resumption point, so the identical call can be retried.
    """


class SkippablePrincipal(AccessInventoryError):
    """Base class for per-principal conditions that only skip one item.

    Page loops catch these, log them and move on to the next member or
    record. They never abort a page.
    """


class UnknownPrincipalType(SkippablePrincipal):
    """A principal type tag has no known category."""

    def __init__(self, type_tag: str):
        super().__init__(f"unknown principal type: {type_tag!r}")
        self.type_tag = type_tag


class NoServerPrincipal(SkippablePrincipal):
    """A database principal has no corresponding server login.

    Expected for users local to a database (contained users, users without
    login, orphaned users).
    """

    def __init__(self, database_name: str, principal_id):
        super().__init__(
            f"no server principal for principal {principal_id} in database {database_name}"
        )
        self.database_name = database_name
        self.principal_id = principal_id


class ProvisioningError(AccessInventoryError):
    """A provisioning action was rejected or failed on the server."""
