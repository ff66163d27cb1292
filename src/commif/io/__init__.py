"""commif I/O helpers.

- variables JSON (build input): [`read_variables_json()`](variables.py:1)
- interface JSON (build output): [`write_interface_json()`](interface.py:1)
"""

from __future__ import annotations

from .interface import (
    InterfaceFormatError,
    interface_from_document,
    interface_to_json_text,
    read_interface_json,
    write_interface_json,
)
from .variables import (
    VariablesFormatError,
    read_variables_json,
    variables_from_json_dict,
    variables_to_json_dict,
    write_variables_json,
)

__all__ = [
    "InterfaceFormatError",
    "VariablesFormatError",
    "interface_from_document",
    "interface_to_json_text",
    "read_interface_json",
    "read_variables_json",
    "variables_from_json_dict",
    "variables_to_json_dict",
    "write_interface_json",
    "write_variables_json",
]
