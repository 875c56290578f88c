"""address / role hash checks and ValidationResult"""

import pytest

from rbac_auditor.utils.validation import (
    ValidationIssue,
    ValidationResult,
    is_valid_address,
    is_valid_role_hash,
)
from tests.fakes import MAINTENANCE_ROLE, OPERATOR


class TestValidationResult:
    """Test ValidationResult dataclass."""

    def test_valid_result_is_truthy(self):
        assert bool(ValidationResult()) is True

    def test_add_error_marks_invalid(self):
        result = ValidationResult()
        result.add_error("REQUIRED", "old_address", "Old address is required")
        assert result.valid is False
        assert result.errors == [ValidationIssue("REQUIRED", "old_address", "Old address is required")]

    def test_add_warning_preserves_validity(self):
        result = ValidationResult()
        result.add_warning("Test warning")
        assert result.valid is True
        assert "Test warning" in result.warnings

    def test_string_representation(self):
        result = ValidationResult()
        assert str(result) == "Validation passed"
        result.add_error("SAME_ADDRESS", "new_address", "must differ")
        result.add_warning("Warning 1")
        output = str(result)
        assert "ERRORS:" in output
        assert "[SAME_ADDRESS] new_address: must differ" in output
        assert "WARNINGS:" in output

    def test_issue_to_dict(self):
        issue = ValidationIssue("NO_ROLES", None, "nothing to rotate")
        assert issue.to_dict() == {"code": "NO_ROLES", "field": None, "message": "nothing to rotate"}
        assert str(issue) == "[NO_ROLES] nothing to rotate"


@pytest.mark.parametrize("value,expected", [
    (OPERATOR, True),
    (OPERATOR.lower(), True),
    ("0x1234", False),
    ("b2" * 20, False),
    ("0x" + "zz" * 20, False),
    (None, False),
    (1234, False),
])
def test_is_valid_address(value, expected):
    assert is_valid_address(value) is expected


def test_bad_checksum_rejected():
    assert is_valid_address("0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed")
    assert not is_valid_address("0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed")


@pytest.mark.parametrize("value,expected", [
    (MAINTENANCE_ROLE, True),
    ("0x" + "00" * 32, True),
    ("0x" + "00" * 31, False),
    ("MAINTENANCE_ROLE", False),
    (None, False),
])
def test_is_valid_role_hash(value, expected):
    assert is_valid_role_hash(value) is expected
