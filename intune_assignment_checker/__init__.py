"""
Intune Group Assignment Checker
===============================
Lists every Intune policy, app, script and endpoint security intent assigned
to one Entra ID group, with inclusion/exclusion and platform, and exports
the result for reporting.

This tool is READ-ONLY. It never modifies the tenant.
"""

__version__ = "1.0.0"
__mode__ = "READ-ONLY"
