"""output formatters for audit results: text, json, markdown"""

from enum import Enum
from typing import Protocol, List

from ..models.audit import AuditResults, Severity

_SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


class OutputFormat(Enum):
    """supported output formats"""
    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


class OutputFormatter(Protocol):
    def format(self, result: AuditResults) -> str:
        ...


def _who(address: str, label) -> str:
    return f"{label} ({address})" if label else address


class TextFormatter:
    """human-readable text output (default terminal format)"""

    def format(self, result: AuditResults) -> str:
        lines = []

        lines.append("=" * 80)
        lines.append(f"RBAC AUDIT: {result.network}")
        lines.append("=" * 80)

        lines.append(f"Contracts: {', '.join(result.contracts)}")
        if result.audit_id:
            lines.append(f"Audit ID: {result.audit_id}")
        lines.append(f"Timestamp: {result.timestamp.isoformat()}")

        stats = result.stats
        lines.append(f"\nActive permissions: {stats.active_permissions}")
        lines.append(f"Historical events:  {stats.historical_events}")
        lines.append(f"Unique roles:       {stats.unique_roles}")
        lines.append(f"Unique addresses:   {stats.unique_addresses}")
        lines.append(f"Anomalies:          {stats.anomalies_count}")

        if result.anomalies:
            lines.append("\nANOMALIES:")
            ordered = sorted(result.anomalies, key=lambda a: _SEVERITY_ORDER[a.severity])
            for i, anomaly in enumerate(ordered, 1):
                lines.append(f"\n{i}. [{anomaly.severity.value.upper()}] {anomaly.type.value}")
                lines.append(f"   {anomaly.description}")
                lines.append(f"   Contract: {anomaly.contract} ({anomaly.contract_address})")

        if result.current_state:
            lines.append("\nCURRENT STATE:")
            for entry in result.current_state:
                flag = "!" if entry.is_anomaly else " "
                lines.append(f" {flag} {entry.contract:<28} {entry.role:<28} {_who(entry.address, entry.label)}")

        lines.append("=" * 80)
        return "\n".join(lines)


class JSONFormatter:
    """json output for programmatic consumption"""

    def format(self, result: AuditResults) -> str:
        return result.to_json()


class MarkdownFormatter:

    def format(self, result: AuditResults) -> str:
        lines: List[str] = []
        lines.append(f"# RBAC audit: {result.network}")
        lines.append("")
        if result.audit_id:
            lines.append(f"**Audit ID**: `{result.audit_id}`  ")
        lines.append(f"**Captured**: {result.timestamp.isoformat()}  ")
        lines.append(f"**Contracts**: {', '.join(result.contracts)}")
        lines.append("")

        lines.append("## summary")
        lines.append("")
        lines.append("| metric | value |")
        lines.append("|---|---|")
        for key, value in result.stats.to_dict().items():
            lines.append(f"| {key.replace('_', ' ')} | {value} |")
        lines.append("")

        lines.append("## anomalies")
        lines.append("")
        if not result.anomalies:
            lines.append("No anomalies detected.")
            lines.append("")
        for anomaly in sorted(result.anomalies, key=lambda a: _SEVERITY_ORDER[a.severity]):
            lines.append(f"- **{anomaly.severity.value.upper()}** `{anomaly.type.value}`: {anomaly.description}")
        if result.anomalies:
            lines.append("")

        lines.append("## current state")
        lines.append("")
        lines.append("| contract | role | holder | anomaly |")
        lines.append("|---|---|---|---|")
        for entry in result.current_state:
            note = entry.anomaly_description or ""
            lines.append(f"| {entry.contract} | {entry.role} | {_who(entry.address, entry.label)} | {note} |")
        lines.append("")

        return "\n".join(lines)


def get_formatter(format_type: OutputFormat) -> OutputFormatter:
    formatters = {
        OutputFormat.TEXT: TextFormatter(),
        OutputFormat.JSON: JSONFormatter(),
        OutputFormat.MARKDOWN: MarkdownFormatter(),
    }
    return formatters[format_type]
