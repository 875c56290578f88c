"""safe transaction builder export"""

import logging
import re
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional, Union

from ..chain_config import get_network
from ..config import config
from ..models.batch import Batch
from .operations import operation_to_safe_transaction
from .safe_schema import SafeBatchFile, SafeMetadata

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_\s]")
_MAX_NAME_LENGTH = 50


def create_safe_metadata(name: str, description: Optional[str] = None) -> SafeMetadata:
    return SafeMetadata(
        name=name,
        description=description or "",
        txBuilderVersion=config.TX_BUILDER_VERSION,
        createdFromSafeAddress="",
        createdFromOwnerAddress="",
        checksum="",
    )


def export_to_safe_json(batch: Batch) -> SafeBatchFile:
    """one transaction per operation, in batch order"""
    return SafeBatchFile(
        version=config.SAFE_FILE_VERSION,
        chainId=get_network(batch.network).chain_id_str,
        createdAt=batch.created_at,
        meta=create_safe_metadata(batch.name, batch.description),
        transactions=[operation_to_safe_transaction(op) for op in batch.operations],
    )


def generate_safe_filename(batch: Batch) -> str:
    """Q4 Permission Cleanup -> Q4-Permission-Cleanup-mainnet-2025-10-20.json"""
    date_str = datetime.fromtimestamp(batch.created_at / 1000, tz=UTC).strftime("%Y-%m-%d")
    safe_name = _UNSAFE_FILENAME_CHARS.sub("", batch.name)
    safe_name = re.sub(r"\s+", "-", safe_name)[:_MAX_NAME_LENGTH]
    return f"{safe_name}-{batch.network}-{date_str}.json"


def write_safe_json(batch: Batch, path: Optional[Union[str, Path]] = None) -> Path:
    """write the export; a directory (or nothing) gets the generated filename"""
    target = Path(path) if path else config.EXPORTS_DIR
    if target.is_dir() or not target.suffix:
        target = target / generate_safe_filename(batch)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(export_to_safe_json(batch).to_json(indent=2), encoding="utf-8")
    logger.info("wrote %d transactions to %s", len(batch.operations), target)
    return target
