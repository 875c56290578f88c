"""correlation id (audit_id) for tracing one audit run across logs, snapshot and exports"""
import uuid
from contextvars import ContextVar, Token
from typing import Optional


# async-safe: each task spawned inside the context sees the same id
_audit_id: ContextVar[Optional[str]] = ContextVar('audit_id', default=None)


def generate_audit_id() -> str:
    """8-character hex string (e.g., "a3f9b2c4")"""
    return uuid.uuid4().hex[:8]


def get_audit_id() -> Optional[str]:
    return _audit_id.get()


class AuditContext:
    """context manager for audit correlation

    usage:
        with AuditContext() as audit_id:
            ...
    """

    def __init__(self, audit_id: Optional[str] = None):
        self.audit_id = audit_id or generate_audit_id()
        self._token: Optional[Token] = None

    def __enter__(self) -> str:
        self._token = _audit_id.set(self.audit_id)
        return self.audit_id

    def __exit__(self, *args):
        # restores whatever id was active before
        if self._token is not None:
            _audit_id.reset(self._token)
            self._token = None
