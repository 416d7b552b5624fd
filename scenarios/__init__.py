# SQL Server Access Inventory - Demo Scenarios
# In-memory catalog, demo data and the walkthrough

from .catalog import InMemoryCatalog
from .demo_data import build_demo_catalog
from .walkthrough import run_scenarios

__all__ = ['InMemoryCatalog', 'build_demo_catalog', 'run_scenarios']
