#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Copyright 2025 Minorli
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Column definition model and the pipe-delimited definition file reader.

One column per line, eight fields separated by '|':

  1. SAS dataset name and path (ignored)
  2. ASCII file name and path (ignored)
  3. variable name
  4. variable length, N or N.D
  5. variable type (1=num 2=char 3=date, anything else is kept as is)
  6. variable date format
  7. variable label
  8. all values exist? (Y/N, anything else is kept as is)

Example:

  ||STUDYNO|3|number||Study Number|not null
  ||CENTERNO|3|number||Center Number|
  ||Fax_In|6.1|1||Mean # Days from Visit to Fax In|N
"""

from __future__ import annotations

import logging
import re
import warnings
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

log = logging.getLogger(__name__)

FIELD_DELIMITER = "|"
COMMENT_PREFIX = "#"
DEFINITION_FIELD_COUNT = 8

SYSTEM_DATE_COLUMN_RE = re.compile(r"^(DFCREATE|DFMODIFY)")
SYSTEM_DATE_FORMAT = "YYYY/MM/DD HH24:MI:SS"
LENGTH_WITH_DECIMALS_RE = re.compile(r"^\s*(\d+)\.(\d+)\s*$")
LENGTH_RE = re.compile(r"^\s*(\d+)\s*$")
NUMERIC_TYPE_PREFIXES = ("NUM", "DEC", "FLOAT", "INT")
CHARACTER_TYPE_RE = re.compile(r"^N?(VAR)?CHAR")

# SAS informat token -> Oracle date mask
DATE_FORMAT_TOKENS = (
    ("MMDDYY10", "MM/DD/YYYY"),
    ("YYMMDD10", "YYYY/MM/DD"),
    ("MMDDYY8", "MM/DD/YY"),
    ("YYMMDD8", "YY/MM/DD"),
)


class ColumnType(Enum):
    NUMERIC = "N"
    CHARACTER = "C"
    DATE = "D"

    @property
    def sql_name(self) -> str:
        return SQL_TYPE_NAMES[self]


SQL_TYPE_NAMES = {
    ColumnType.NUMERIC: "NUMBER",
    ColumnType.CHARACTER: "VARCHAR2",
    ColumnType.DATE: "DATE",
}
TYPE_CODES = {
    "1": ColumnType.NUMERIC,
    "2": ColumnType.CHARACTER,
    "3": ColumnType.DATE,
}
REQUIRED_FLAGS = {
    "Y": True,
    "N": False,
    "": False,
}

# A str value means "unrecognized literal, pass through verbatim".
TypeSpec = Union[ColumnType, str]
RequiredSpec = Union[bool, str]


class DefinitionSourceError(Exception):
    """Definition file is missing or unreadable."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__(f"{reason}: {path}")
        self.path = Path(path)
        self.reason = reason


class MalformedFieldWarning(UserWarning):
    """A definition field outside the known codes was passed through."""


@dataclass(frozen=True)
class ColumnDef:
    name: str
    type: TypeSpec = ColumnType.CHARACTER
    width: Optional[int] = None
    decimals: Optional[int] = None
    date_format: str = ""
    required: RequiredSpec = False
    description: str = ""
    max_length: Optional[int] = None

    @property
    def effective_width(self) -> Optional[int]:
        return self.width or self.max_length or None

    @property
    def type_name(self) -> str:
        """Upper-case type token; single letter literals map like the enum."""
        if isinstance(self.type, ColumnType):
            return self.type.sql_name
        token = (self.type or "").strip().upper()
        for col_type in ColumnType:
            if token == col_type.value:
                return col_type.sql_name
        return token

    @property
    def is_numeric(self) -> bool:
        return self.type is ColumnType.NUMERIC or self.type_name.startswith(NUMERIC_TYPE_PREFIXES)

    @property
    def is_date(self) -> bool:
        return self.type is ColumnType.DATE or self.type_name.startswith("DATE")

    @property
    def is_character(self) -> bool:
        if self.type is ColumnType.CHARACTER:
            return True
        return bool(CHARACTER_TYPE_RE.match(self.type_name))

    @property
    def constraint(self) -> str:
        if isinstance(self.required, str):
            return self.required.strip().upper()
        return "NOT NULL" if self.required else ""


@dataclass(frozen=True)
class TableMeta:
    table_name: str = ""
    table_description: str = ""


@dataclass(frozen=True)
class TableDefinition:
    columns: Tuple[ColumnDef, ...]
    meta: TableMeta = field(default_factory=TableMeta)
    source: Optional[Path] = None

    def __len__(self) -> int:
        return len(self.columns)


def _warn_passthrough(kind: str, value: str, line_no: int) -> None:
    warnings.warn(
        f"line {line_no}: unrecognized {kind} {value!r} kept as literal",
        MalformedFieldWarning,
        stacklevel=3,
    )


def parse_length(raw: str) -> Tuple[Optional[int], Optional[int]]:
    """'6.1' -> (6, 1); '3' -> (3, None); anything else -> (None, None)."""
    match = LENGTH_WITH_DECIMALS_RE.match(raw or "")
    if match:
        return int(match.group(1)), int(match.group(2))
    match = LENGTH_RE.match(raw or "")
    if match:
        return int(match.group(1)) or None, None
    return None, None


def translate_date_format(token: str) -> str:
    for prefix, mask in DATE_FORMAT_TOKENS:
        if (token or "").startswith(prefix):
            return mask
    return token or ""


def parse_definition_line(line: str, line_no: int = 0) -> ColumnDef:
    parts = line.split(FIELD_DELIMITER)
    if len(parts) < DEFINITION_FIELD_COUNT:
        parts.extend([""] * (DEFINITION_FIELD_COUNT - len(parts)))
    name = parts[2].strip()
    width, decimals = parse_length(parts[3])

    type_code = parts[4].strip()
    col_type: TypeSpec = TYPE_CODES.get(type_code, type_code)
    if isinstance(col_type, str) and col_type:
        _warn_passthrough("type code", col_type, line_no)

    date_format = translate_date_format(parts[5])
    description = parts[6]

    flag = parts[7].strip()
    required: RequiredSpec = REQUIRED_FLAGS.get(flag, flag)
    if isinstance(required, str):
        _warn_passthrough("not-null flag", required, line_no)

    if SYSTEM_DATE_COLUMN_RE.match(name.upper()):
        col_type = ColumnType.DATE
        date_format = SYSTEM_DATE_FORMAT

    return ColumnDef(
        name=name,
        type=col_type,
        width=width,
        decimals=decimals,
        date_format=date_format,
        required=required,
        description=description,
    )


def parse_definition_lines(
    lines: Iterable[str],
    table_name: str = "",
    table_description: str = "",
) -> TableDefinition:
    columns: List[ColumnDef] = []
    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip() or line.startswith(COMMENT_PREFIX):
            continue
        columns.append(parse_definition_line(line, line_no))
    return TableDefinition(
        columns=tuple(columns),
        meta=TableMeta(table_name=table_name, table_description=table_description),
    )


def read_definition(path: Union[str, Path], table_description: str = "") -> TableDefinition:
    """Read a definition file; the table name defaults to the file stem."""
    def_path = Path(path)
    if not str(path):
        raise DefinitionSourceError(def_path, "No definition file name is specified")
    if not def_path.is_file():
        raise DefinitionSourceError(def_path, "Could not find definition file")
    try:
        text = def_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DefinitionSourceError(def_path, f"Could not open definition file ({exc})") from exc

    log.info("Defining column array from %s", def_path)
    definition = parse_definition_lines(
        text.splitlines(),
        table_name=def_path.stem,
        table_description=table_description,
    )
    log.debug("%s: %d columns", def_path.name, len(definition.columns))
    return TableDefinition(columns=definition.columns, meta=definition.meta, source=def_path)
