"""point-in-time RBAC auditor and remediation batch builder for AccessControl contracts"""

__version__ = "0.3.0"
