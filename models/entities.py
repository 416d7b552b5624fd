"""
Audit Store Entities
====================

ORM models of the local provisioning audit trail. One row per provisioning
action attempted against SQL Server, whether it succeeded or not.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Enum as SQLEnum
import enum

from .database import Base


class ActionOutcome(enum.Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class ProvisioningAction(enum.Enum):
    """Kinds of changes the provisioner makes on the server."""
    GRANT = "grant"
    REVOKE = "revoke"
    CREATE_LOGIN = "create-login"
    DISABLE_LOGIN = "disable-login"


class ProvisioningEvent(Base):
    """
    One provisioning action and its outcome.

    Entitlement and principal ids are stored in their string form so the
    trail stays readable after the objects are dropped on the server.
    """
    __tablename__ = 'provisioning_events'

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)

    # What
    action = Column(SQLEnum(ProvisioningAction), nullable=False, index=True)
    entitlement_id = Column(String(512))
    resource_type = Column(String(50))

    # Who
    principal_type = Column(String(50))
    principal_id = Column(String(255), index=True)
    principal_name = Column(String(255))

    # Result
    outcome = Column(SQLEnum(ActionOutcome), nullable=False)
    detail = Column(Text)

    # Server the action ran against
    server_name = Column(String(255))

    def __repr__(self):
        return (
            f"<ProvisioningEvent(action='{self.action.value if self.action else None}', "
            f"entitlement='{self.entitlement_id}', principal='{self.principal_id}', "
            f"outcome='{self.outcome.value if self.outcome else None}')>"
        )

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'action': self.action.value,
            'entitlement_id': self.entitlement_id,
            'resource_type': self.resource_type,
            'principal_type': self.principal_type,
            'principal_id': self.principal_id,
            'principal_name': self.principal_name,
            'outcome': self.outcome.value,
            'detail': self.detail,
            'server_name': self.server_name,
        }
