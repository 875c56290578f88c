"""command line surface (offline paths only)"""

import json

import pytest

from main import build_parser, main
from tests.fakes import DATA_REGISTRY, NEW_OPERATOR, OPERATOR


@pytest.fixture
def registry_file(tmp_path):
    path = tmp_path / "registry.json"
    path.write_text(json.dumps({
        "addresses": {OPERATOR: {"label": "Operator"}},
        "roles": ["MAINTENANCE_ROLE"],
        "contracts": {"mainnet": {"DataRegistry": DATA_REGISTRY}},
    }))
    return path


def test_parser_normalizes_network():
    args = build_parser().parse_args(["audit", "--network", "vana", "--contract", "DataRegistry"])
    assert args.network == "mainnet"
    assert args.contract == ["DataRegistry"]
    assert args.format == "text"


def test_parser_rejects_unknown_network():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["audit", "--network", "polygon"])


def test_rotate_from_registry_writes_batch(registry_file, tmp_path, capsys):
    out_dir = tmp_path / "batches"
    code = main([
        "--registry", str(registry_file), "--no-log",
        "rotate", "--network", "mainnet",
        "--old", OPERATOR, "--new", NEW_OPERATOR,
        "--from-registry", "--name", "Rotate operator",
        "--out", str(out_dir),
    ])
    assert code == 0
    assert "UNVERIFIED ROTATION" in capsys.readouterr().out

    (path,) = out_dir.iterdir()
    assert path.name.startswith("Rotate-operator-mainnet-")
    exported = json.loads(path.read_text())
    # DEFAULT_ADMIN_ROLE + MAINTENANCE_ROLE on DataRegistry, grant then revoke each
    assert len(exported["transactions"]) == 4
    assert exported["meta"]["name"] == "Rotate operator"


def test_rotate_invalid_input_fails(registry_file, capsys):
    code = main([
        "--registry", str(registry_file), "--no-log",
        "rotate", "--old", OPERATOR, "--new", OPERATOR, "--from-registry",
    ])
    assert code == 1
    assert "VALIDATION ERRORS" in capsys.readouterr().out


def test_revoke_all_rejects_bad_address(capsys):
    assert main(["--no-log", "revoke-all", "--address", "0x1234"]) == 1
    assert "Invalid address" in capsys.readouterr().err


def _no_audit(*args, **kwargs):
    raise AssertionError("audit must not run")


def test_revoke_all_rejects_contract_name_before_audit(registry_file, monkeypatch, capsys):
    monkeypatch.setattr("main._run_audit", _no_audit)
    code = main([
        "--registry", str(registry_file), "--no-log",
        "revoke-all", "--address", OPERATOR, "--contract", "DataRegistry",
    ])
    assert code == 1
    assert "Invalid contract address: DataRegistry" in capsys.readouterr().err


def test_revoke_all_rejects_role_name_before_audit(registry_file, monkeypatch, capsys):
    monkeypatch.setattr("main._run_audit", _no_audit)
    code = main([
        "--registry", str(registry_file), "--no-log",
        "revoke-all", "--address", OPERATOR, "--contract", DATA_REGISTRY, "--role", "MAINTENANCE_ROLE",
    ])
    assert code == 1
    assert "Invalid role hash: MAINTENANCE_ROLE" in capsys.readouterr().err


def test_missing_registry_file(tmp_path, capsys):
    code = main([
        "--registry", str(tmp_path / "nope.json"), "--no-log",
        "rotate", "--old", OPERATOR, "--new", NEW_OPERATOR, "--from-registry",
    ])
    assert code == 1
    assert "Registry error" in capsys.readouterr().err
