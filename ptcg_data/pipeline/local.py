"""
PTCG Data - Local Dataset Loader

Reads the authoritative card/set/deck files from the data directory. Each file
holds either a JSON (or YAML) array of records or a single record object.

Any unreadable or undecodable file raises LocalLoadError and aborts the load:
there is no partial tolerance for local files.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog
import yaml

from ptcg_data.exceptions import LocalLoadError

logger = structlog.get_logger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def matching_files(root: str | Path, pattern: str) -> list[Path]:
    """Files under `root` matching a glob pattern ("cards/en/**/*.json")."""
    return sorted(p for p in Path(root).glob(pattern) if p.is_file())


def read_payload(path: Path) -> Any:
    """Decode one dataset file as JSON, or YAML for .yaml/.yml files."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LocalLoadError(str(path), str(e)) from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(content)
        return json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LocalLoadError(str(path), f"invalid {path.suffix.lstrip('.') or 'json'}: {e}") from e


def iter_payloads(root: str | Path, pattern: str) -> Iterator[tuple[Path, Any]]:
    """Yield (path, decoded payload) for every matching file."""
    for path in matching_files(root, pattern):
        yield path, read_payload(path)


def load_local(root: str | Path, pattern: str) -> list[Any]:
    """
    Load every record from the files matching `pattern` under `root`.

    Arrays are concatenated in file order; an object file contributes one
    record.

    Raises:
        LocalLoadError: when any matched file cannot be read or decoded.
    """
    records: list[Any] = []
    file_count = 0
    for path, payload in iter_payloads(root, pattern):
        file_count += 1
        if isinstance(payload, list):
            records.extend(payload)
        elif payload is not None:
            records.append(payload)
        logger.debug("local_file_loaded", path=str(path))

    logger.info(
        "local_load_complete",
        pattern=pattern,
        files=file_count,
        records=len(records),
    )
    return records
