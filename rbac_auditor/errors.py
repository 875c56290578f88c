"""exception hierarchy for the audit pipeline"""

from typing import Optional


class AuditError(Exception):
    """audit could not produce a snapshot"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class SourceUnavailableError(AuditError):
    """a log query or batched read endpoint failed"""


class VerificationError(AuditError):
    """authoritative role-check batch failed; state cannot be trusted"""


class NoContractsSelectedError(AuditError):
    """contract filter resolved to an empty set"""


class UnknownNetworkError(KeyError):
    """network name not in the chain table"""


class RegistryLoadError(ValueError):
    """registry file is missing fields or malformed"""


class ExecutionStateError(RuntimeError):
    """illegal execution status transition"""
