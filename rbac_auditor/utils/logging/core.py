"""
Audit run logger

Dual-layer run log (JSON + SQLite) for audits and remediation exports.

The logger captures:
- audit runs (network, contracts, stats)
- every anomaly raised by a run
- Safe batch exports (file, operation count, verified or registry source)
- pipeline errors
"""

import json
import sqlite3
from dataclasses import asdict
from pathlib import Path
from datetime import datetime, UTC
from typing import Dict, Any, Optional, List

from ...config import config
from ...models.audit import AuditResults
from ...models.batch import Batch
from ..correlation import get_audit_id
from .types import LogCategory, LogEntry


class AuditLogger:
    """
    Dual-layer logging system

    Usage:
        run_log = AuditLogger()
        run_log.log_audit(results)
        run_log.log_export(batch, path, source="audit")
    """

    def __init__(
        self,
        raw_dir: Optional[Path] = None,
        db_path: Optional[Path] = None,
        use_sqlite: Optional[bool] = None,
    ):
        self.raw_dir = Path(raw_dir) if raw_dir else config.LOGS_RAW_DIR
        self.db_path = Path(db_path) if db_path else config.LOGS_DB_PATH
        self.use_sqlite = config.LOG_TO_SQLITE if use_sqlite is None else use_sqlite

        for category in LogCategory:
            (self.raw_dir / category.value).mkdir(parents=True, exist_ok=True)

        if self.use_sqlite:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_database()

    def _init_database(self):
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS audit_runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    audit_id TEXT,
                    network TEXT NOT NULL,
                    contracts TEXT NOT NULL,
                    active_permissions INTEGER,
                    historical_events INTEGER,
                    unique_roles INTEGER,
                    unique_addresses INTEGER,
                    anomalies_count INTEGER
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS anomalies (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    audit_id TEXT,
                    network TEXT NOT NULL,
                    type TEXT NOT NULL,
                    severity TEXT NOT NULL,
                    address TEXT NOT NULL,
                    role_hash TEXT,
                    contract_address TEXT,
                    description TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS batch_exports (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    audit_id TEXT,
                    batch_id TEXT NOT NULL,
                    batch_name TEXT NOT NULL,
                    network TEXT NOT NULL,
                    operations INTEGER NOT NULL,
                    source TEXT NOT NULL,
                    path TEXT
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_anomalies_audit ON anomalies(audit_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_runs_network ON audit_runs(network)")

            conn.commit()

    def _now(self) -> str:
        return datetime.now(UTC).isoformat()

    def _save_json(self, entry: LogEntry, filename: str) -> Path:
        filepath = self.raw_dir / entry.category / filename
        with open(filepath, 'w', encoding="utf-8") as f:
            json.dump(asdict(entry), f, indent=2, default=str)
        return filepath

    def _entry(self, category: LogCategory, event_type: str, network: Optional[str], audit_id: Optional[str], data: Dict[str, Any]) -> LogEntry:
        return LogEntry(
            timestamp=self._now(),
            category=category.value,
            event_type=event_type,
            network=network,
            audit_id=audit_id or get_audit_id(),
            data=data,
        )

    def log_audit(self, results: AuditResults) -> Path:
        """
        Saves to:
        - JSON: data/logs/raw/audits/YYYY-MM-DD_<network>_<audit_id>.json
        - SQLite: audit_runs + anomalies tables
        """
        entry = self._entry(LogCategory.AUDIT, "audit_completed", results.network, results.audit_id, {
            "contracts": list(results.contracts),
            "stats": results.stats.to_dict(),
            "high_severity": len(results.get_high_severity()),
        })
        day = datetime.now(UTC).strftime('%Y-%m-%d')
        path = self._save_json(entry, f"{day}_{results.network}_{entry.audit_id or 'noid'}.json")

        if results.anomalies:
            anomaly_entry = self._entry(LogCategory.ANOMALY, "anomalies_detected", results.network, entry.audit_id, {
                "anomalies": [a.to_dict() for a in results.anomalies],
            })
            self._save_json(anomaly_entry, f"{day}_{results.network}_{entry.audit_id or 'noid'}_anomalies.json")

        if self.use_sqlite:
            stats = results.stats
            with sqlite3.connect(str(self.db_path)) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO audit_runs
                    (timestamp, audit_id, network, contracts, active_permissions,
                     historical_events, unique_roles, unique_addresses, anomalies_count)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    entry.timestamp, entry.audit_id, results.network, json.dumps(list(results.contracts)),
                    stats.active_permissions, stats.historical_events, stats.unique_roles,
                    stats.unique_addresses, stats.anomalies_count,
                ))
                cursor.executemany("""
                    INSERT INTO anomalies
                    (audit_id, network, type, severity, address, role_hash, contract_address, description)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, [
                    (entry.audit_id, results.network, a.type.value, a.severity.value, a.address,
                     a.role_hash, a.contract_address, a.description)
                    for a in results.anomalies
                ])
                conn.commit()
        return path

    def log_export(self, batch: Batch, path: Optional[Path], source: str = "audit", audit_id: Optional[str] = None) -> Path:
        entry = self._entry(LogCategory.EXPORT, "safe_export", batch.network, audit_id, {
            "batch_id": batch.id,
            "batch_name": batch.name,
            "operations": len(batch.operations),
            "source": source,
            "path": str(path) if path else None,
        })
        log_path = self._save_json(entry, f"{datetime.now(UTC).strftime('%Y-%m-%d')}_{batch.id}.json")

        if self.use_sqlite:
            with sqlite3.connect(str(self.db_path)) as conn:
                conn.execute("""
                    INSERT INTO batch_exports
                    (timestamp, audit_id, batch_id, batch_name, network, operations, source, path)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    entry.timestamp, entry.audit_id, batch.id, batch.name, batch.network,
                    len(batch.operations), source, str(path) if path else None,
                ))
                conn.commit()
        return log_path

    def log_error(self, stage: str, error: BaseException, network: Optional[str] = None) -> Path:
        entry = self._entry(LogCategory.ERROR, stage, network, None, {
            "error_type": type(error).__name__,
            "message": str(error),
            "cause": repr(getattr(error, "cause", None)) if getattr(error, "cause", None) else None,
        })
        stamp = datetime.now(UTC).strftime('%Y-%m-%d_%H%M%S_%f')
        return self._save_json(entry, f"{stamp}_{stage}.json")

    def recent_runs(self, limit: int = 10) -> List[Dict[str, Any]]:
        if not self.use_sqlite:
            return []
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT * FROM audit_runs ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
        return [dict(row) for row in rows]
