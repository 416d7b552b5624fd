# SQL Server Access Inventory - Core Modules
# Role-graph traversal, permission decoding and provisioning

from .audit import AuditLogger
from .connector import SQLServerConnector
from .grants import GrantSynthesizer
from .permissions import PermissionDecoder
from .provisioner import Provisioner
from .walker import RoleGraphWalker, VisitPolicy

__all__ = [
    'AuditLogger',
    'SQLServerConnector',
    'GrantSynthesizer',
    'PermissionDecoder',
    'Provisioner',
    'RoleGraphWalker',
    'VisitPolicy'
]
