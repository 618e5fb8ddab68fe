"""
Power Platform Tenant Inventory
===============================
Enumerates environments, apps, cloud flows, connectors, DLP policies and
environment role assignments, and writes them to a multi-sheet workbook
for governance review.

WARNING: This tool operates in STRICT READ-ONLY mode.
         No write operations will be performed against the tenant.
"""

__version__ = "1.0.0"
__mode__ = "READ-ONLY"
