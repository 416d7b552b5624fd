"""
Catalog Queries
===============

T-SQL text for the catalog views the client reads. Templates containing
``{db}`` are formatted with an already validated database name; every value
that can be bound is passed as a parameter.

Reference: https://learn.microsoft.com/en-us/sql/relational-databases/system-catalog-views/
"""

_PAGE = "OFFSET :offset ROWS FETCH NEXT :limit ROWS ONLY"

_LOGIN_TYPES = "('S', 'U', 'C', 'E', 'K')"

SERVER_NAME = "SELECT SERVERPROPERTY('ServerName') AS server_name"

# Databases

LIST_DATABASES = f"""
SELECT database_id, name, state_desc
FROM sys.databases
ORDER BY database_id ASC {_PAGE}
"""

GET_DATABASE = """
SELECT database_id, name, state_desc
FROM sys.databases
WHERE database_id = :database_id
"""

LIST_SCHEMAS = f"""
SELECT schema_id, principal_id, name
FROM [{{db}}].sys.schemas
ORDER BY schema_id ASC {_PAGE}
"""

GET_SCHEMA = """
SELECT schema_id, principal_id, name
FROM [{db}].sys.schemas
WHERE schema_id = :schema_id
"""

LIST_TABLES = f"""
SELECT object_id, schema_id, name
FROM [{{db}}].sys.tables
WHERE schema_id = :schema_id
ORDER BY object_id ASC {_PAGE}
"""

LIST_ENDPOINTS = f"""
SELECT endpoint_id, name, protocol_desc, type_desc, state_desc
FROM sys.endpoints
ORDER BY endpoint_id ASC {_PAGE}
"""

# Server principals

LIST_LOGINS = f"""
SELECT principal_id, sid, name, type, type_desc, is_disabled
FROM sys.server_principals
WHERE type IN {_LOGIN_TYPES}
ORDER BY principal_id ASC {_PAGE}
"""

GET_LOGIN = f"""
SELECT principal_id, sid, name, type, type_desc, is_disabled
FROM sys.server_principals
WHERE type IN {_LOGIN_TYPES} AND principal_id = :principal_id
"""

GET_LOGIN_BY_NAME = f"""
SELECT principal_id, sid, name, type, type_desc, is_disabled
FROM sys.server_principals
WHERE type IN {_LOGIN_TYPES} AND name = :name
"""

LIST_GROUPS = f"""
SELECT principal_id, sid, name, type, type_desc
FROM sys.server_principals
WHERE type IN ('G', 'X')
ORDER BY principal_id ASC {_PAGE}
"""

LIST_SERVER_ROLES = f"""
SELECT principal_id, sid, name, type_desc
FROM sys.server_principals
WHERE type = 'R'
ORDER BY principal_id ASC {_PAGE}
"""

GET_SERVER_ROLE = """
SELECT principal_id, sid, name, type_desc
FROM sys.server_principals
WHERE type = 'R' AND principal_id = :principal_id
"""

LIST_SERVER_ROLE_MEMBERS = f"""
SELECT p.principal_id, p.name, p.type
FROM sys.server_principals p
JOIN sys.server_role_members m ON m.member_principal_id = p.principal_id
WHERE m.role_principal_id = :role_id
ORDER BY p.principal_id ASC {_PAGE}
"""

# Database principals

LIST_DATABASE_ROLES = f"""
SELECT principal_id, sid, name, type_desc
FROM [{{db}}].sys.database_principals
WHERE type = 'R'
ORDER BY principal_id ASC {_PAGE}
"""

GET_DATABASE_ROLE = """
SELECT principal_id, sid, name, type_desc
FROM [{db}].sys.database_principals
WHERE type = 'R' AND principal_id = :principal_id
"""

LIST_DATABASE_ROLE_MEMBERS = f"""
SELECT p.principal_id, p.name, p.type
FROM [{{db}}].sys.database_principals p
JOIN [{{db}}].sys.database_role_members m ON m.member_principal_id = p.principal_id
WHERE m.role_principal_id = :role_id
ORDER BY p.principal_id ASC {_PAGE}
"""

SERVER_PRINCIPAL_FOR_DATABASE_PRINCIPAL = """
SELECT sp.principal_id, sp.sid, sp.name, sp.type, sp.type_desc, sp.is_disabled
FROM sys.server_principals sp
WHERE sp.sid = (
    SELECT dp.sid FROM [{db}].sys.database_principals dp WHERE dp.principal_id = :principal_id
)
"""

DATABASE_USER_FOR_LOGIN = """
SELECT dp.principal_id, dp.sid, dp.name, dp.type_desc
FROM [{db}].sys.database_principals dp
JOIN sys.server_principals sp ON dp.sid = sp.sid
WHERE dp.type IN ('S', 'U', 'G', 'E', 'X')
  AND dp.name NOT IN ('dbo', 'guest', 'INFORMATION_SCHEMA', 'sys')
  AND sp.principal_id = :principal_id
"""

# Permissions, grouped by (grantee, state) with codes aggregated.

LIST_SERVER_PERMISSIONS = f"""
SELECT
    p.grantee_principal_id AS principal_id,
    pr.name AS principal_name,
    pr.type AS principal_type,
    p.state AS state,
    STRING_AGG(RTRIM(p.type), ',') AS perms
FROM sys.server_permissions p
JOIN sys.server_principals pr ON p.grantee_principal_id = pr.principal_id
WHERE p.state IN ('G', 'W')
GROUP BY p.grantee_principal_id, p.state, pr.name, pr.type
ORDER BY p.grantee_principal_id ASC, p.state ASC {_PAGE}
"""

_DATABASE_PERMISSIONS = """
SELECT
    p.grantee_principal_id AS principal_id,
    pr.name AS principal_name,
    pr.type AS principal_type,
    p.state AS state,
    STRING_AGG(RTRIM(p.type), ',') AS perms
FROM [{{db}}].sys.database_permissions p
JOIN [{{db}}].sys.database_principals pr ON p.grantee_principal_id = pr.principal_id
WHERE p.state IN ('G', 'W') AND {securable}
GROUP BY p.grantee_principal_id, p.state, pr.name, pr.type
ORDER BY p.grantee_principal_id ASC, p.state ASC {page}
"""

LIST_DATABASE_PERMISSIONS = _DATABASE_PERMISSIONS.format(
    securable="p.class = 0 AND p.major_id = 0", page=_PAGE
)

LIST_SCHEMA_PERMISSIONS = _DATABASE_PERMISSIONS.format(
    securable="p.class = 3 AND p.major_id = :securable_id", page=_PAGE
)

LIST_TABLE_PERMISSIONS = _DATABASE_PERMISSIONS.format(
    securable="p.class = 1 AND p.major_id = :securable_id AND p.minor_id = 0", page=_PAGE
)
