"""command line entry point for the rbac auditor

audits AccessControl role assignments on a network and builds Safe
Transaction Builder batches that fix them.

usage:
    python main.py audit --network mainnet --registry registry.json
    python main.py revoke-all --network mainnet --address 0xabc... --out batches/
    python main.py rotate --network moksha --old 0xabc... --new 0xdef...
    python main.py rotate --network moksha --old 0xabc... --new 0xdef... --from-registry
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime, UTC
from pathlib import Path
from typing import List, Optional

from rbac_auditor.audit import Auditor, BlockscoutLogSource, Multicall3Reader
from rbac_auditor.chain_config import NETWORKS, NETWORK_ALIASES, get_network, normalize_network
from rbac_auditor.config import config
from rbac_auditor.errors import AuditError, RegistryLoadError, UnknownNetworkError
from rbac_auditor.models.audit import AuditResults
from rbac_auditor.models.batch import Batch
from rbac_auditor.registry import Registries, load_registries
from rbac_auditor.remediation import (
    BatchBuilder,
    BatchGenerationResult,
    RotationInput,
    generate_rotation_batch,
    generate_rotation_batch_from_registry,
    revoke_all_template,
    write_safe_json,
)
from rbac_auditor.utils.logging import AuditLogger
from rbac_auditor.utils.output_formats import OutputFormat, get_formatter
from rbac_auditor.utils.validation import is_valid_address, is_valid_role_hash

logger = logging.getLogger(__name__)


def _load_registries(path: Optional[Path]) -> Registries:
    registry_file = path or config.REGISTRY_FILE
    if registry_file is None:
        logger.warning("no registry file given; every address and role will look unknown")
        return Registries.empty()
    return load_registries(str(Path(registry_file).resolve()))


async def _run_audit(network: str, registries: Registries, contract_filter: Optional[List[str]]) -> AuditResults:
    log_source = BlockscoutLogSource()
    reader = Multicall3Reader()
    try:
        auditor = Auditor(log_source, reader, registries)
        return await auditor.run_audit(network, contract_filter or None)
    finally:
        await log_source.aclose()
        await reader.aclose()


def _run_log(args: argparse.Namespace) -> Optional[AuditLogger]:
    if args.no_log:
        return None
    config.ensure_directories()
    return AuditLogger()


def _print_banner(title: str, lines: List[str]) -> None:
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)
    for line in lines:
        print(f"  {line}")
    print("=" * 70 + "\n")


def _write_batch(batch: Batch, out: Optional[Path], run_log: Optional[AuditLogger], source: str, audit_id: Optional[str] = None) -> Path:
    path = write_safe_json(batch, out)
    if run_log:
        run_log.log_export(batch, path, source=source, audit_id=audit_id)
    print(f"Safe batch ({len(batch.operations)} transactions) saved to: {path}")
    return path


def cmd_audit(args: argparse.Namespace) -> int:
    registries = _load_registries(args.registry)
    run_log = _run_log(args)
    try:
        results = asyncio.run(_run_audit(args.network, registries, args.contract))
    except AuditError as e:
        if run_log:
            run_log.log_error("audit", e, network=args.network)
        print(f"Audit failed: {e}", file=sys.stderr)
        return 1

    if run_log:
        run_log.log_audit(results)

    formatted = get_formatter(OutputFormat(args.format)).format(results)
    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        ext = {"text": "txt", "json": "json", "markdown": "md"}[args.format]
        output_file = output_dir / f"rbac_{results.network}_{timestamp}.{ext}"
        output_file.write_text(formatted, encoding="utf-8")
        print(f"Report saved to: {output_file}")

    print(formatted)
    return 1 if results.get_high_severity() else 0


def cmd_revoke_all(args: argparse.Namespace) -> int:
    if not is_valid_address(args.address):
        print(f"Invalid address: {args.address}", file=sys.stderr)
        return 1
    for contract in args.contract or []:
        if not is_valid_address(contract):
            print(f"Invalid contract address: {contract}", file=sys.stderr)
            return 1
    if args.role is not None and not is_valid_role_hash(args.role):
        print(f"Invalid role hash: {args.role}", file=sys.stderr)
        return 1
    registries = _load_registries(args.registry)
    run_log = _run_log(args)
    try:
        results = asyncio.run(_run_audit(args.network, registries, None))
    except AuditError as e:
        if run_log:
            run_log.log_error("revoke-all", e, network=args.network)
        print(f"Audit failed: {e}", file=sys.stderr)
        return 1

    operations = revoke_all_template(results, args.address, args.contract, args.role, registries=registries)
    if not operations:
        print(f"{args.address} holds no matching roles on {results.network}; nothing to revoke")
        return 0

    builder = BatchBuilder(results.network, name=args.name or f"Revoke all from {args.address[:10]}")
    builder.add_operations(operations)
    validation = builder.validate(results)
    for warning in validation.warnings:
        print(f"  warning {warning.code}: {warning.message}")
    if not validation.valid:
        _print_banner("BATCH VALIDATION ERRORS:", [f"{e.code}: {e.message}" for e in validation.errors])
        return 1

    _write_batch(builder.to_batch(), args.out, run_log, source="audit", audit_id=results.audit_id)
    return 0


def _report_generation(result: BatchGenerationResult) -> None:
    if result.errors:
        _print_banner("VALIDATION ERRORS:", [f"{e.field or '-'}: {e.message}" for e in result.errors])
    if result.warnings:
        title = "UNVERIFIED ROTATION (registry mode):" if not result.is_verified else "WARNINGS:"
        _print_banner(title, result.warnings)


def cmd_rotate(args: argparse.Namespace) -> int:
    registries = _load_registries(args.registry)
    run_log = _run_log(args)
    rotation = RotationInput(
        old_address=args.old,
        new_address=args.new,
        role=args.role,
        contract_addresses=args.contract or None,
    )

    audit_id = None
    if args.from_registry:
        result = generate_rotation_batch_from_registry(rotation, args.network, registries)
    else:
        try:
            results = asyncio.run(_run_audit(args.network, registries, None))
        except AuditError as e:
            if run_log:
                run_log.log_error("rotate", e, network=args.network)
            print(f"Audit failed: {e}", file=sys.stderr)
            print("Re-run with --from-registry for an unverified rotation batch.", file=sys.stderr)
            return 1
        audit_id = results.audit_id
        result = generate_rotation_batch(rotation, args.network, results, registries=registries)

    _report_generation(result)
    if not result.success or result.batch is None:
        return 1

    if args.name:
        result.batch.name = args.name
    _write_batch(result.batch, args.out, run_log, source=result.source, audit_id=audit_id)
    return 0


def _network_arg(value: str) -> str:
    try:
        return get_network(value).name
    except UnknownNetworkError:
        choices = ", ".join(sorted(set(NETWORKS) | set(NETWORK_ALIASES)))
        raise argparse.ArgumentTypeError(f"unknown network '{value}' (choose from {choices})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RBAC auditor for AccessControl contracts"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--registry",
        type=Path,
        default=None,
        help="Registry JSON file (known addresses, roles, contracts). Defaults to $RBAC_REGISTRY_FILE"
    )
    parser.add_argument("--no-log", action="store_true", help="Skip the JSON/SQLite run log")

    sub = parser.add_subparsers(dest="command", required=True)

    audit = sub.add_parser("audit", help="Audit current role assignments")
    audit.add_argument("--network", type=_network_arg, default="mainnet")
    audit.add_argument(
        "--contract",
        action="append",
        default=None,
        help="Contract name to audit (repeatable, 'all' for every auditable contract)"
    )
    audit.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
    )
    audit.add_argument("--output", type=Path, default=None, help="Directory for the report file")
    audit.set_defaults(func=cmd_audit)

    revoke = sub.add_parser("revoke-all", help="Batch revoking every role an address currently holds")
    revoke.add_argument("--network", type=_network_arg, default="mainnet")
    revoke.add_argument("--address", required=True)
    revoke.add_argument("--contract", action="append", default=None, help="Contract address filter (repeatable)")
    revoke.add_argument("--role", default=None, help="Role hash filter")
    revoke.add_argument("--name", default=None, help="Batch name")
    revoke.add_argument("--out", type=Path, default=None, help="Output file or directory")
    revoke.set_defaults(func=cmd_revoke_all)

    rotate = sub.add_parser("rotate", help="Batch moving roles from one address to another")
    rotate.add_argument("--network", type=_network_arg, default="mainnet")
    rotate.add_argument("--old", required=True, help="Address losing the roles")
    rotate.add_argument("--new", required=True, help="Address gaining the roles")
    rotate.add_argument("--contract", action="append", default=None, help="Contract address filter (repeatable)")
    rotate.add_argument("--role", default=None, help="Role hash filter")
    rotate.add_argument("--name", default=None, help="Batch name")
    rotate.add_argument(
        "--from-registry",
        action="store_true",
        help="Skip the audit and guess roles from the registry (unverified)"
    )
    rotate.add_argument("--out", type=Path, default=None, help="Output file or directory")
    rotate.set_defaults(func=cmd_rotate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.network = normalize_network(args.network)

    try:
        return args.func(args)
    except RegistryLoadError as e:
        print(f"Registry error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
