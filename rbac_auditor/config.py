import os
import warnings
from pathlib import Path
from typing import Callable, Optional, List, TypeVar
from dataclasses import dataclass, field

N = TypeVar("N", int, float)


def _parse_bounded(
    value: Optional[str],
    default: N,
    cast: Callable[[str], N],
    min_val: Optional[N] = None,
    max_val: Optional[N] = None,
) -> N:
    """env value -> number; unparsable or out-of-range values fall back to default"""
    if value is None:
        return default
    try:
        result = cast(value)
    except (ValueError, TypeError):
        return default
    if min_val is not None and result < min_val:
        warnings.warn(f"Value {result} is below minimum {min_val}, using default {default}", RuntimeWarning, stacklevel=3)
        return default
    if max_val is not None and result > max_val:
        warnings.warn(f"Value {result} exceeds maximum {max_val}, using default {default}", RuntimeWarning, stacklevel=3)
        return default
    return result


def safe_int(value: Optional[str], default: int, min_val: Optional[int] = None, max_val: Optional[int] = None) -> int:
    return _parse_bounded(value, default, int, min_val, max_val)


def safe_float(value: Optional[str], default: float, min_val: Optional[float] = None, max_val: Optional[float] = None) -> float:
    return _parse_bounded(value, default, float, min_val, max_val)


def parse_keywords(value: Optional[str], default: List[str]) -> List[str]:
    """comma separated keyword list, upper-cased"""
    if not value:
        return list(default)
    keywords = [part.strip().upper() for part in value.split(",") if part.strip()]
    if not keywords:
        warnings.warn(
            f"Empty keyword list '{value}', using default {default}",
            RuntimeWarning,
            stacklevel=2
        )
        return list(default)
    return keywords


DEFAULT_ADMIN_KEYWORDS = ["ADMIN", "OWNER", "DEFAULT_ADMIN"]


@dataclass
class AuditorConfig:
    PROJECT_ROOT: Path = field(default_factory=lambda: Path(
        os.getenv("RBAC_AUDITOR_ROOT")
        or Path(__file__).parent.parent.absolute()
    ))

    @property
    def DATA_DIR(self) -> Path:
        return self.PROJECT_ROOT / "data"

    @property
    def LOGS_DIR(self) -> Path:
        return self.DATA_DIR / "logs"

    @property
    def LOGS_RAW_DIR(self) -> Path:
        return self.LOGS_DIR / "raw"

    @property
    def LOGS_DB_PATH(self) -> Path:
        return self.LOGS_DIR / "audits.db"

    @property
    def EXPORTS_DIR(self) -> Path:
        return self.DATA_DIR / "exports"

    @property
    def REGISTRY_FILE(self) -> Optional[Path]:
        raw = os.getenv("RBAC_REGISTRY_FILE")
        return Path(raw) if raw else None

    HTTP_TIMEOUT_SECONDS: float = safe_float(os.getenv("HTTP_TIMEOUT_SECONDS"), default=30.0, min_val=1.0, max_val=600.0)

    # anomaly heuristics
    ADMIN_KEYWORDS: List[str] = field(default_factory=lambda: parse_keywords(
        os.getenv("ADMIN_KEYWORDS"), DEFAULT_ADMIN_KEYWORDS
    ))
    ADMIN_THRESHOLD: int = safe_int(os.getenv("ADMIN_THRESHOLD"), default=3, min_val=0, max_val=1000)

    # safe transaction builder export
    TX_BUILDER_VERSION: str = os.getenv("TX_BUILDER_VERSION", "1.16.5")
    SAFE_FILE_VERSION: str = "1.0"

    LOG_TO_SQLITE: bool = os.getenv("LOG_TO_SQLITE", "1") != "0"
    DEBUG_RPC: bool = bool(os.getenv("DEBUG_RPC", "0") == "1")

    def __post_init__(self) -> None:
        if self.ADMIN_THRESHOLD < 0:
            warnings.warn(
                f"[config] Invalid ADMIN_THRESHOLD={self.ADMIN_THRESHOLD}, defaulting to 3",
                RuntimeWarning,
                stacklevel=2,
            )
            self.ADMIN_THRESHOLD = 3

    def ensure_directories(self):
        directories = [
            self.DATA_DIR,
            self.LOGS_DIR,
            self.LOGS_RAW_DIR,
            self.EXPORTS_DIR,
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def validate(self):
        if not self.PROJECT_ROOT.exists():
            raise ValueError(f"Project root does not exist: {self.PROJECT_ROOT}")

        registry_file = self.REGISTRY_FILE
        if registry_file is not None and not registry_file.exists():
            raise ValueError(f"Registry file does not exist: {registry_file}")

        self.ensure_directories()

    def summary(self) -> str:
        registry = str(self.REGISTRY_FILE) if self.REGISTRY_FILE else "built-in"

        return f"""
RBAC Auditor Configuration:
  Project root:      {self.PROJECT_ROOT}
  Registry:          {registry}
  HTTP timeout:      {self.HTTP_TIMEOUT_SECONDS:.0f}s
  Admin keywords:    {', '.join(self.ADMIN_KEYWORDS)}
  Admin threshold:   {self.ADMIN_THRESHOLD}
  Tx builder:        {self.TX_BUILDER_VERSION}
  SQLite logging:    {'on' if self.LOG_TO_SQLITE else 'off'}
""".strip()


config = AuditorConfig()
