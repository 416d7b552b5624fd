# SQL Server Access Inventory - SQL Server client
# Catalog reads and provisioning statements against sys.* views

from .client import Client, check_identifier
from .models import (
    DatabaseModel,
    EndpointModel,
    LoginType,
    PrincipalModel,
    SchemaModel,
    ServerModel,
    TableModel
)
from .pager import Pager

__all__ = [
    'Client',
    'check_identifier',
    'DatabaseModel',
    'EndpointModel',
    'LoginType',
    'PrincipalModel',
    'SchemaModel',
    'ServerModel',
    'TableModel',
    'Pager'
]
