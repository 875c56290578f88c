"""utilities for the rbac auditor"""
from .logging import AuditLogger, LogCategory
from .correlation import AuditContext, get_audit_id
from .validation import ValidationResult, ValidationIssue, is_valid_address, is_valid_role_hash

__all__ = [
    "AuditLogger",
    "LogCategory",
    "AuditContext",
    "get_audit_id",
    "ValidationResult",
    "ValidationIssue",
    "is_valid_address",
    "is_valid_role_hash",
]
