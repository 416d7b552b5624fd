# SQL Server Access Inventory - Models
# Value types for principals and grants, traversal state, and the audit store

from .database import Base, engine, get_session, init_db, reset_db
from .entities import ActionOutcome, ProvisioningAction, ProvisioningEvent
from .principals import (
    Entitlement,
    Grant,
    GrantPage,
    PermissionRecord,
    PrincipalCategory,
    PrincipalRef,
    ResourceId,
    RoleMember,
    Scope
)
from .traversal import FrontierEntry, TraversalToken

__all__ = [
    'Base',
    'engine',
    'get_session',
    'init_db',
    'reset_db',
    'ActionOutcome',
    'ProvisioningAction',
    'ProvisioningEvent',
    'Entitlement',
    'Grant',
    'GrantPage',
    'PermissionRecord',
    'PrincipalCategory',
    'PrincipalRef',
    'ResourceId',
    'RoleMember',
    'Scope',
    'FrontierEntry',
    'TraversalToken'
]
