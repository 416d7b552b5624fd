"""
Permission State Decoder
========================

Turns one raw permission row into entitlement slugs.

A row carries a state flag and the comma-joined permission codes the
principal holds in that state::

    state='G', perms='SL,IN'   ->  ['SL', 'IN']
    state='W', perms='SL,IN'   ->  ['SL-grant', 'IN-grant']

Codes outside the scope's vocabulary are dropped silently; the catalog
contains permission types (column-level, deny-only, newer engine features)
that have no entitlement on the platform.
"""

import logging
from typing import List, Mapping, Optional

from models.principals import PermissionRecord, PermissionState, Scope
from .vocabulary import PermissionVocabulary, entitlement_slug, load_vocabularies

logger = logging.getLogger(__name__)

CODE_DELIMITER = ","


class PermissionDecoder:
    """
    Decodes permission rows against injected per-scope vocabularies.

    Args:
        vocabularies: scope -> vocabulary; defaults to the built-in tables
    """

    def __init__(self, vocabularies: Optional[Mapping[Scope, PermissionVocabulary]] = None):
        self.vocabularies = vocabularies if vocabularies is not None else load_vocabularies()

    def codes(self, record: PermissionRecord, scope: Scope) -> List[str]:
        """Known permission codes of a record, in the order they appear."""
        vocabulary = self.vocabularies[scope]
        known = []
        for code in (record.permissions or "").split(CODE_DELIMITER):
            code = code.strip()
            if code and code in vocabulary:
                known.append(code)
        return known

    def decode(self, record: PermissionRecord, scope: Scope) -> List[str]:
        """
        Entitlement slugs granted by a record.

        Args:
            record: one (principal, state) permission row
            scope: scope the row was read from

        Returns:
            List of slugs; empty when the state is not a grant state or no
            code is known
        """
        try:
            state = PermissionState((record.state or "").strip().upper())
        except ValueError:
            logger.warning(
                "unexpected permission state %r for principal %s",
                record.state, record.principal_name
            )
            return []

        with_grant = state is PermissionState.GRANTED_WITH_OPTION
        return [entitlement_slug(code, with_grant) for code in self.codes(record, scope)]
