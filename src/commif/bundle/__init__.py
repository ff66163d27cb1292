"""commif bundle I/O (interface package on disk).

- Save/load canonical interface tables as CSV under `tables/`
- Keep the variables source and the interface document under `raw/`
- Write/read `manifest.json` with sha256 hashes for reproducibility
"""

from __future__ import annotations

from .io import InterfaceBundle, load_package, save_package

__all__ = [
    "InterfaceBundle",
    "save_package",
    "load_package",
]
