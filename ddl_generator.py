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
SQL*Plus script generation (DROP/CREATE TABLE, grants, comments).

A multi-file batch writes all tables into one spooled session: the FIRST
call opens the spool, the LAST call closes it and MIDDLE calls emit bare
table statements. A standalone script is ONLY (open and close).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from column_defs import ColumnDef, TableMeta

log = logging.getLogger(__name__)

GENERATOR_NAME = "oracle_loader.generate_ddl"
# prefix or suffix only: PATIDNO is not an identifier column
ID_MARKER_RE = re.compile(r"(^ID|ID$)")


class BatchPosition(Enum):
    FIRST = "first"
    MIDDLE = "middle"
    LAST = "last"
    ONLY = "only"

    @classmethod
    def for_index(cls, index: int, total: int) -> "BatchPosition":
        if total <= 1:
            return cls.ONLY
        if index <= 0:
            return cls.FIRST
        if index >= total - 1:
            return cls.LAST
        return cls.MIDDLE

    @property
    def opens_session(self) -> bool:
        return self in (BatchPosition.FIRST, BatchPosition.ONLY)

    @property
    def closes_session(self) -> bool:
        return self in (BatchPosition.LAST, BatchPosition.ONLY)


@dataclass
class DdlOptions:
    table_name: str = ""
    fallback_table_name: str = ""
    drop: bool = True
    relax_constraints: bool = False
    initial_extent: str = ""
    next_extent: str = ""
    tablespace: str = ""
    spool_file: str = ""
    sql_file: str = ""
    position: BatchPosition = BatchPosition.ONLY


def resolve_table_name(explicit: str, meta: Optional[TableMeta], fallback: str = "") -> str:
    if explicit:
        return explicit
    if meta is not None and meta.table_name:
        return meta.table_name
    return fallback


def sanitize_comment(text: str) -> str:
    """Single quotes and '&' would break the statement under SQL*Plus."""
    return (text or "").replace("'", " ").replace("&", "and")


def quote_column(name: str) -> str:
    return f"\"{(name or '').upper()}\""


def column_type_clause(col: ColumnDef) -> str:
    type_name = col.type_name
    if col.is_date:
        return type_name
    width = col.effective_width
    if not width:
        return type_name
    if col.is_numeric and col.decimals is not None:
        return f"{type_name}({width},{col.decimals})"
    return f"{type_name}({width})"


def keeps_constraint(col: ColumnDef, relax_constraints: bool) -> bool:
    """
    Relaxed mode only enforces identifier-like columns (name starting or
    ending with ID) so loosely validated definitions still load.
    """
    if not col.constraint:
        return False
    if not relax_constraints:
        return True
    return bool(ID_MARKER_RE.search((col.name or "").upper()))


def column_line(col: ColumnDef, relax_constraints: bool) -> str:
    parts = [quote_column(col.name), column_type_clause(col)]
    if keeps_constraint(col, relax_constraints):
        parts.append(col.constraint)
    return "    " + " ".join(part for part in parts if part)


def storage_lines(initial_extent: str, next_extent: str) -> List[str]:
    if not initial_extent and not next_extent:
        return []
    lines = ["STORAGE ("]
    if initial_extent:
        lines.append(f"  INITIAL {initial_extent}")
    if next_extent:
        lines.append(f"  NEXT    {next_extent}")
    lines.append(")")
    return lines


def header_lines(sql_file: str, now: datetime) -> List[str]:
    return [
        f"REM file name: {sql_file}" if sql_file else "REM",
        f"REM created at {now.strftime('%a %b %d %H:%M:%S %Y')}",
        f"REM created by {GENERATOR_NAME}",
        "REM",
    ]


def generate_ddl(
    columns: Sequence[ColumnDef],
    options: DdlOptions,
    meta: Optional[TableMeta] = None,
    now: Optional[datetime] = None,
) -> str:
    table = resolve_table_name(options.table_name, meta, options.fallback_table_name)
    if not table:
        log.warning("Oracle table name is not specified.")
    position = options.position

    lines = header_lines(options.sql_file, now or datetime.now())
    if options.spool_file and position.opens_session:
        lines.append(f"spool {options.spool_file}")

    if options.drop:
        lines.append(f"DROP TABLE {table};")
    else:
        lines.append(f"-- DROP TABLE {table};")

    lines.append(f"CREATE TABLE {table} (")
    last = len(columns) - 1
    for idx, col in enumerate(columns):
        line = column_line(col, options.relax_constraints)
        lines.append(line + ("," if idx < last else ")"))
    if not columns:
        lines.append(")")

    trailer: List[str] = []
    if options.tablespace:
        trailer.append(f"TABLESPACE {options.tablespace}")
    trailer.extend(storage_lines(options.initial_extent, options.next_extent))
    if trailer:
        lines.extend(trailer)
    lines[-1] += ";"

    lines.append(f"GRANT SELECT ON {table} TO PUBLIC;")

    table_desc = sanitize_comment(meta.table_description if meta else "")
    if table_desc.strip():
        lines.append(f"COMMENT ON TABLE {table} IS")
        lines.append(f"  '{table_desc}';")
    for col in columns:
        desc = sanitize_comment(col.description)
        if not desc.strip():
            continue
        lines.append(f"COMMENT ON COLUMN {table}.{quote_column(col.name)} IS")
        lines.append(f"  '{desc}';")

    if position.closes_session:
        if options.spool_file:
            lines.append("spool off")
        lines.append("exit")

    log.debug("DDL for %s: %d columns (%s)", table, len(columns), position.value)
    return "\n".join(lines) + "\n"
