from .operations import (
    GRANT_ROLE_METHOD,
    REVOKE_ROLE_METHOD,
    create_grant_operation,
    create_revoke_operation,
    operation_to_safe_transaction,
)
from .templates import TEMPLATES, get_template, revoke_all_template, rotation_template
from .builder import BatchBuilder, BatchValidationResult
from .executor import BatchExecutor
from .export import export_to_safe_json, generate_safe_filename, write_safe_json
from .rotation import (
    BatchGenerationResult,
    RotationInput,
    discover_roles_to_rotate,
    generate_rotation_batch,
    generate_rotation_batch_from_registry,
    validate_rotation_input,
)
from .safe_schema import SafeBatchFile, SafeTransaction

__all__ = [
    "GRANT_ROLE_METHOD",
    "REVOKE_ROLE_METHOD",
    "create_grant_operation",
    "create_revoke_operation",
    "operation_to_safe_transaction",
    "TEMPLATES",
    "get_template",
    "revoke_all_template",
    "rotation_template",
    "BatchBuilder",
    "BatchValidationResult",
    "BatchExecutor",
    "export_to_safe_json",
    "generate_safe_filename",
    "write_safe_json",
    "BatchGenerationResult",
    "RotationInput",
    "discover_roles_to_rotate",
    "generate_rotation_batch",
    "generate_rotation_batch_from_registry",
    "validate_rotation_input",
    "SafeBatchFile",
    "SafeTransaction",
]
