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
"""SQL*Loader control file generation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

from column_defs import ColumnDef, TableMeta
from ddl_generator import quote_column, resolve_table_name

log = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 1000
FIELD_TERMINATOR = "|"
FIELD_ENCLOSURE = "'"


@dataclass
class LoadOptions:
    data_file: str = ""
    ctl_file: str = ""
    bad_file: str = ""
    discard_file: str = ""
    log_file: str = ""
    table_name: str = ""
    replace: bool = True
    direct: bool = False
    max_errors: int = DEFAULT_MAX_ERRORS


@dataclass(frozen=True)
class LoadFiles:
    data_file: str
    bad_file: str
    discard_file: str
    log_file: str


def companion_path(path: str, suffix: str) -> str:
    """'/load/s083p001.dat' + '.bad' -> '/load/s083p001.bad'"""
    base, _ext = os.path.splitext(path)
    return f"{base}{suffix}"


def resolve_load_files(options: LoadOptions) -> LoadFiles:
    data_file = options.data_file
    if not data_file and options.ctl_file:
        data_file = companion_path(options.ctl_file, ".dat")
    return LoadFiles(
        data_file=data_file,
        bad_file=options.bad_file or companion_path(data_file, ".bad"),
        discard_file=options.discard_file or companion_path(data_file, ".dis"),
        log_file=options.log_file or companion_path(data_file, ".log"),
    )


def field_spec(col: ColumnDef) -> str:
    name = quote_column(col.name)
    parts = [name]
    width = col.effective_width
    if col.is_date:
        parts.append(col.type_name.lower())
        if col.date_format:
            parts.append(f"\"{col.date_format.upper()}\"")
        parts.append(f"NULLIF {name}=BLANKS")
    elif col.is_character and width:
        parts.append(f"char({width})")
    return "    " + " ".join(parts)


def generate_ctl(
    columns: Sequence[ColumnDef],
    options: LoadOptions,
    meta: Optional[TableMeta] = None,
) -> str:
    files = resolve_load_files(options)
    data_stem = os.path.splitext(os.path.basename(files.data_file))[0]
    table = resolve_table_name(options.table_name, meta, data_stem)
    if not table:
        log.warning("Oracle table name is not specified.")

    if options.direct:
        lines: List[str] = [
            f"OPTIONS (ERRORS={options.max_errors},SILENT=FEEDBACK,DIRECT=TRUE)",
            "UNRECOVERABLE",
        ]
    else:
        lines = [f"OPTIONS (ERRORS={options.max_errors},SILENT=FEEDBACK)"]
    lines.extend([
        "LOAD DATA",
        f"INFILE '{files.data_file}'",
        f"BADFILE '{files.bad_file}'",
        f"DISCARDFILE '{files.discard_file}'",
        f"{'REPLACE' if options.replace else 'APPEND'} INTO TABLE {table}",
        f"FIELDS TERMINATED BY \"{FIELD_TERMINATOR}\" OPTIONALLY ENCLOSED BY \"{FIELD_ENCLOSURE}\"",
        "    TRAILING NULLCOLS",
        "(",
    ])
    last = len(columns) - 1
    for idx, col in enumerate(columns):
        lines.append(field_spec(col) + ("," if idx < last else ")"))
    if not columns:
        lines.append(")")
    log.debug("control file for %s: %d fields", table, len(columns))
    return "\n".join(lines) + "\n"
