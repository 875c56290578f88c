"""input validation utilities"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import re

from eth_utils import is_address, is_checksum_address, is_checksum_formatted_address

ROLE_HASH_PATTERN = re.compile(r'^0x[0-9a-fA-F]{64}$')
HEX_ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')


def is_valid_address(value: Any) -> bool:
    """0x-prefixed 20-byte hex; mixed case must carry a valid checksum"""
    if not isinstance(value, str) or not HEX_ADDRESS_PATTERN.match(value) or not is_address(value):
        return False
    if is_checksum_formatted_address(value):
        return is_checksum_address(value)
    return True


def is_valid_role_hash(value: Any) -> bool:
    return isinstance(value, str) and bool(ROLE_HASH_PATTERN.match(value))


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    field: Optional[str]
    message: str

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"code": self.code, "field": self.field, "message": self.message}

    def __str__(self) -> str:
        where = f"{self.field}: " if self.field else ""
        return f"[{self.code}] {where}{self.message}"


@dataclass
class ValidationResult:
    """result of input validation; errors accumulate, nothing is raised"""
    valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid

    def __str__(self) -> str:
        lines = []
        if self.errors:
            lines.append("ERRORS:")
            for error in self.errors:
                lines.append(f"  - {error}")
        if self.warnings:
            lines.append("WARNINGS:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")
        return "\n".join(lines) if lines else "Validation passed"

    def add_error(self, code: str, field_name: Optional[str], message: str) -> None:
        """add an error and mark as invalid."""
        self.errors.append(ValidationIssue(code, field_name, message))
        self.valid = False

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)
