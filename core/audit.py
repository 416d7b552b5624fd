"""
Provisioning Audit Trail
========================

Records every provisioning action this tool attempts against SQL Server,
successful or not, in the local audit store.

Features:
- One event per grant, revoke, login creation and login disable
- Query by action, principal, entitlement, outcome and time window
- Export to JSON or CSV
- Summary statistics for a reporting window
"""

import csv
import io
import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import desc

from models.entities import ActionOutcome, ProvisioningAction, ProvisioningEvent

logger = logging.getLogger(__name__)

EXPORT_FIELDS = [
    'timestamp', 'action', 'entitlement_id', 'resource_type', 'principal_type',
    'principal_id', 'principal_name', 'outcome', 'detail', 'server_name'
]


class AuditLogger:
    """
    Audit trail service for provisioning actions.

    Args:
        session: SQLAlchemy session for the audit store
        server_name: name of the server actions run against, stamped on
            every event
    """

    def __init__(self, session: Session, server_name: Optional[str] = None):
        self.session = session
        self.server_name = server_name

    def log_action(
        self,
        action: ProvisioningAction,
        outcome: ActionOutcome,
        entitlement_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        principal_type: Optional[str] = None,
        principal_id: Optional[str] = None,
        principal_name: Optional[str] = None,
        detail: Optional[str] = None
    ) -> ProvisioningEvent:
        """
        Record one provisioning action.

        Returns:
            The created ProvisioningEvent (flushed, not committed)
        """
        event = ProvisioningEvent(
            action=action,
            outcome=outcome,
            entitlement_id=entitlement_id,
            resource_type=resource_type,
            principal_type=principal_type,
            principal_id=principal_id,
            principal_name=principal_name,
            detail=detail,
            server_name=self.server_name
        )
        self.session.add(event)
        self.session.flush()
        logger.debug("recorded %r", event)
        return event

    def get_events(
        self,
        action: Optional[ProvisioningAction] = None,
        principal_id: Optional[str] = None,
        entitlement_id: Optional[str] = None,
        outcome: Optional[ActionOutcome] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[ProvisioningEvent]:
        """
        Query recorded events, newest first.

        Args:
            action: Filter by action kind
            principal_id: Filter by principal id
            entitlement_id: Filter by entitlement id
            outcome: Filter by outcome
            start_time: Filter by start time
            end_time: Filter by end time
            limit: Maximum results to return
            offset: Pagination offset
        """
        query = self.session.query(ProvisioningEvent)

        if action is not None:
            query = query.filter(ProvisioningEvent.action == action)
        if principal_id is not None:
            query = query.filter(ProvisioningEvent.principal_id == principal_id)
        if entitlement_id is not None:
            query = query.filter(ProvisioningEvent.entitlement_id == entitlement_id)
        if outcome is not None:
            query = query.filter(ProvisioningEvent.outcome == outcome)
        if start_time is not None:
            query = query.filter(ProvisioningEvent.timestamp >= start_time)
        if end_time is not None:
            query = query.filter(ProvisioningEvent.timestamp <= end_time)

        return (
            query.order_by(desc(ProvisioningEvent.timestamp), desc(ProvisioningEvent.id))
            .limit(limit)
            .offset(offset)
            .all()
        )

    def get_recent_failures(self, hours: int = 24, limit: int = 50) -> List[ProvisioningEvent]:
        """Failed actions within the last ``hours``."""
        cutoff = datetime.utcnow() - timedelta(hours=hours)
        return self.session.query(ProvisioningEvent).filter(
            ProvisioningEvent.outcome == ActionOutcome.FAILURE,
            ProvisioningEvent.timestamp >= cutoff
        ).order_by(desc(ProvisioningEvent.timestamp)).limit(limit).all()

    def export_events(
        self,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        format: str = 'json'
    ) -> str:
        """
        Export events as text.

        Args:
            start_time: Export start time
            end_time: Export end time
            format: 'json' or 'csv'

        Raises:
            ValueError: unsupported format
        """
        if format not in ('json', 'csv'):
            raise ValueError(f"Unsupported format: {format}")

        events = self.get_events(start_time=start_time, end_time=end_time, limit=10000)
        rows = [event.to_dict() for event in events]

        if format == 'json':
            return json.dumps(rows, indent=2)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS, extrasaction='ignore', lineterminator='\n')
        writer.writeheader()
        writer.writerows(rows)
        return buffer.getvalue()

    def get_statistics(self, hours: int = 24) -> Dict[str, Any]:
        """Counts of actions and outcomes within the last ``hours``."""
        cutoff = datetime.utcnow() - timedelta(hours=hours)
        events = self.session.query(ProvisioningEvent).filter(
            ProvisioningEvent.timestamp >= cutoff
        ).all()

        total = len(events)
        failures = sum(1 for e in events if e.outcome == ActionOutcome.FAILURE)

        by_action = {action.value: 0 for action in ProvisioningAction}
        for event in events:
            by_action[event.action.value] += 1

        return {
            'period_hours': hours,
            'total_actions': total,
            'successes': total - failures,
            'failures': failures,
            'failure_rate': failures / total if total > 0 else 0,
            'by_action': by_action,
            'unique_principals': len(set(e.principal_id for e in events if e.principal_id)),
            'unique_entitlements': len(set(e.entitlement_id for e in events if e.entitlement_id))
        }
