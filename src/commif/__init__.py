"""commif: communication interface synthesis for co-simulation models.

Turns a flat list of hierarchically named model variables into publish/subscribe
topics plus generated struct definitions, and flattens those structs back into
qualified leaf members.
"""

from __future__ import annotations

from commif.core import InterfaceDescription, StructDefinitionResolver, VariableDescriptor, build_interface
from commif.io import read_variables_json, write_interface_json

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "InterfaceDescription",
    "StructDefinitionResolver",
    "VariableDescriptor",
    "build_interface",
    "read_variables_json",
    "write_interface_json",
]
