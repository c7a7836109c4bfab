"""cdl: a configuration definition language for decoded JSON/YAML trees.

Compile a flat template once, then validate any number of instances
against it, optionally extracting values through a configurator::

    ct = cdl.compile_template({"/": "{}host port?", "host": "str", "port": "integer"})
    ct.validate({"host": "db", "port": 5432})
"""

from cdl.domain.configurator import (
    Configurator,
    ConfiguratorFunc,
    Destination,
    EnumDestination,
    Sink,
)
from cdl.domain.enums import Enum, EnumType
from cdl.domain.errors import CdlError, ErrorKind
from cdl.domain.grammar import Template, compile_template, must_compile
from cdl.domain.path import Path
from cdl.domain.validator import CompiledTemplate

__version__ = "0.1.0"

__all__ = [
    "CdlError",
    "CompiledTemplate",
    "Configurator",
    "ConfiguratorFunc",
    "Destination",
    "Enum",
    "EnumDestination",
    "EnumType",
    "ErrorKind",
    "Path",
    "Sink",
    "Template",
    "compile_template",
    "must_compile",
]
