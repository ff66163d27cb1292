"""manifest.json for interface packages.

Layout:

    {
      "schema_version": "commif-1.0",
      "name": "...", "version": "...", "created_utc": "2026-01-31T00:00:00Z",
      "interface_version": 1,
      "build_options": {"include_clocks": true, "struct_suffix": "_struct"},
      "sources": [{"path": "raw/interface.json", "sha256": "..."}],
      "tables": {"publishers": {"path": "tables/publishers.csv", "rows": 2,
                                "sha256": "...", "dtypes": {...}}}
    }

Paths are POSIX-style and relative to the package root. Kept free of pandas and
of the rest of the package.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from functools import partial
from pathlib import Path, PurePath
from typing import Any

SCHEMA_VERSION = "commif-1.0"
MANIFEST_NAME = "manifest.json"

_CHUNK = 1 << 20


def sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(partial(f.read, _CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


def file_entry(root: Path, rel: PurePath, **extra: Any) -> dict[str, Any]:
    """`{"path", "sha256", **extra}` for a file below `root`."""
    return {"path": rel.as_posix(), "sha256": sha256_file(Path(root) / rel), **extra}


def verify_entry(root: Path, entry: Any, *, where: str) -> None:
    """Recompute the sha256 of a manifest entry; ValueError on mismatch."""
    if not isinstance(entry, dict):
        raise ValueError(f"{MANIFEST_NAME}: {where} must be an object")
    rel, expected = entry.get("path"), entry.get("sha256")
    if not isinstance(rel, str) or not isinstance(expected, str):
        raise ValueError(f"{MANIFEST_NAME}: {where} must have string path and sha256")
    actual = sha256_file(Path(root) / rel)
    if actual != expected:
        raise ValueError(f"sha256 mismatch for {rel}: expected {expected}, got {actual}")


def build_manifest(
    *,
    name: str,
    version: str,
    sources: list[dict[str, Any]],
    tables: dict[str, dict[str, Any]],
    interface_version: int,
    build_options: dict[str, Any] | None = None,
    created_utc: str | None = None,
) -> dict[str, Any]:
    fields = {"name": name, "version": version}
    for key, value in fields.items():
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"manifest: {key} must be a non-empty string")
    if created_utc is None:
        created_utc = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    return {
        "schema_version": SCHEMA_VERSION,
        "name": name.strip(),
        "version": version.strip(),
        "created_utc": created_utc,
        "interface_version": int(interface_version),
        "build_options": dict(build_options or {}),
        "sources": list(sources),
        "tables": dict(tables),
    }


def read_manifest(root: Path) -> dict[str, Any]:
    """Load and check `<root>/manifest.json`."""
    p = Path(root) / MANIFEST_NAME
    if not p.is_file():
        raise ValueError(f"{MANIFEST_NAME}: not found at {p}")
    try:
        obj = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{MANIFEST_NAME}: invalid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise ValueError(f"{MANIFEST_NAME}: expected JSON object")
    if obj.get("schema_version") != SCHEMA_VERSION:
        raise ValueError(
            f"{MANIFEST_NAME}: unsupported schema_version {obj.get('schema_version')!r} (expected {SCHEMA_VERSION!r})"
        )
    for key, kind in (("sources", list), ("tables", dict)):
        if not isinstance(obj.get(key), kind):
            raise ValueError(f"{MANIFEST_NAME}: {key} must be a JSON {'array' if kind is list else 'object'}")
    return obj


def write_manifest(root: Path, manifest: dict[str, Any]) -> Path:
    p = Path(root) / MANIFEST_NAME
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return p
