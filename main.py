#!/usr/bin/env python3
"""
SQL Server Access Inventory - Main Entry Point
==============================================

Flattens nested SQL Server role membership into paginated member grants,
decodes server, database, schema and table permission grants, and
provisions logins, role memberships and database permissions.

Usage:
    python main.py --help                                  # Show available commands
    python main.py demo                                    # Walk through the demo catalog
    python main.py --dsn demo roles members server-role:300 --all
    MSSQL_DSN=mssql+pymssql://... python main.py roles list
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from cli.main import app

if __name__ == "__main__":
    app()
