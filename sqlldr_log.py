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
SQL*Loader log parsing.

Two report flavours are produced from a loader log:

  result - one '|' delimited line of 14 fields per log:
           rate|table|loaded|data errors|WHEN failed|all null|
           skipped|read|rejected|discarded|start|end|elapsed|cpu
  error  - per ORA code: count, description and the rejected record
           numbers in range notation (e.g. 2-5,9-10,12)

Reports for several logs are concatenated; only index 0 gets the header.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from range_utils import compress_runs, sort_ascending

log = logging.getLogger(__name__)

MONTHS = {
    "Jan": 1, "Feb": 2, "Mar": 3, "Apr": 4, "May": 5, "Jun": 6,
    "Jul": 7, "Aug": 8, "Sep": 9, "Oct": 10, "Nov": 11, "Dec": 12,
}

RESULT_HEADER = "\n".join([
    "# Table columns:",
    "#    1 - Success Rate",
    "#    2 - Oracle table name",
    "#    3 - Rows successfully loaded",
    "#    4 - Rows not loaded due to data errors",
    "#    5 - Rows not loaded because all WHEN clauses were failed",
    "#    6 - Rows not loaded because all fields were null",
    "#    7 - Total logical records skipped",
    "#    8 - Total logical records read",
    "#    9 - Total logical records rejected",
    "#   10 - Total logical records discarded",
    "#   11 - Start time",
    "#   12 - End time",
    "#   13 - Elapsed time",
    "#   14 - CPU time",
])
_ERROR_TITLE = "SQL*Loader error report"
ERROR_HEADER = "\n".join([
    _ERROR_TITLE,
    "=" * (len(_ERROR_TITLE) + 1),
    "# Output format:",
    "# ORA-#####   counts",
    "# ORA-#####:tabname:colname (count) record range",
])

RUN_TIME_RE = re.compile(r"(\w+) (\d\d) (\d\d):(\d\d):(\d\d) (\d{1,4})$")
RECORD_RE = re.compile(r"^Record\s*(\d+):\s*(.+)")
RECORD_TABLE_RE = re.compile(r"table\s+([^,\s]+?)\.?(?:,|\s|$)")
RECORD_COLUMN_RE = re.compile(r"column\s+(.+?)\.?\s*$")
ORA_ERROR_RE = re.compile(r"^(ORA-\d+):\s*(.+)")


class LogMode(Enum):
    RESULT = "result"
    ERROR = "error"


class LogSourceError(Exception):
    """Loader log is missing or unreadable."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__(f"{reason}: {path}")
        self.path = Path(path)
        self.reason = reason


@dataclass
class LoadResultRecord:
    success_rate: str = ""
    table_name: str = ""
    rows_loaded: int = 0
    rows_data_errors: int = 0
    rows_when_failed: int = 0
    rows_all_null: int = 0
    records_skipped: int = 0
    records_read: int = 0
    records_rejected: int = 0
    records_discarded: int = 0
    start_time: str = ""
    end_time: str = ""
    elapsed_time: str = ""
    cpu_time: str = ""

    def compute_success_rate(self) -> str:
        if self.records_read == 0:
            self.success_rate = ""
        else:
            self.success_rate = f"{self.rows_loaded / self.records_read * 100:.2f}"
        return self.success_rate

    def values(self) -> List[str]:
        return [str(getattr(self, item.name)) for item in fields(self)]

    def to_line(self, delimiter: str = "|") -> str:
        return delimiter.join(self.values())


@dataclass
class LoadErrorEntry:
    code: str
    description: str = ""
    count: int = 0
    table_name: str = ""
    column_name: str = ""
    record_numbers: List[int] = field(default_factory=list)

    @property
    def record_ranges(self) -> str:
        return compress_runs(sort_ascending(list(self.record_numbers)))


def format_run_time(line: str) -> str:
    """'Run began on Tue Jul 06 13:19:52 2004' -> '2004/07/06 13:19:52'"""
    match = RUN_TIME_RE.search(line)
    if not match or match.group(1) not in MONTHS:
        return ""
    mon, day, hh, mi, ss, year = match.groups()
    return (
        f"{int(year):04d}/{MONTHS[mon]:02d}/{int(day):02d} "
        f"{int(hh):02d}:{int(mi):02d}:{int(ss):02d}"
    )


def _int_setter(attr: str) -> Callable[[LoadResultRecord, "re.Match[str]", str], None]:
    def setter(record: LoadResultRecord, match: "re.Match[str]", _line: str) -> None:
        setattr(record, attr, int(match.group(1)))
    return setter


def _text_setter(attr: str) -> Callable[[LoadResultRecord, "re.Match[str]", str], None]:
    def setter(record: LoadResultRecord, match: "re.Match[str]", _line: str) -> None:
        setattr(record, attr, match.group(1).strip())
    return setter


def _time_setter(attr: str) -> Callable[[LoadResultRecord, "re.Match[str]", str], None]:
    def setter(record: LoadResultRecord, _match: "re.Match[str]", line: str) -> None:
        setattr(record, attr, format_run_time(line))
    return setter


ResultRule = Tuple[re.Pattern, Callable[[LoadResultRecord, re.Match, str], None]]

RESULT_RULES: List[ResultRule] = [
    (re.compile(r"^Table\s*(.*):$"), _text_setter("table_name")),
    (re.compile(r"^\s*(\d+)\s*Rows? successfully loaded\.$"), _int_setter("rows_loaded")),
    (re.compile(r"^\s*(\d+).*due to data errors\.$"), _int_setter("rows_data_errors")),
    (re.compile(r"^\s*(\d+).*all WHEN clauses were failed\.$"), _int_setter("rows_when_failed")),
    (re.compile(r"^\s*(\d+).*all fields were null\.$"), _int_setter("rows_all_null")),
    (re.compile(r"^Total logical records skipped:\s*(\d+)"), _int_setter("records_skipped")),
    (re.compile(r"^Total logical records read:\s*(\d+)"), _int_setter("records_read")),
    (re.compile(r"^Total logical records rejected:\s*(\d+)"), _int_setter("records_rejected")),
    (re.compile(r"^Total logical records discarded:\s*(\d+)"), _int_setter("records_discarded")),
    (re.compile(r"^Run began on"), _time_setter("start_time")),
    (re.compile(r"^Run ended on"), _time_setter("end_time")),
    (re.compile(r"^Elapsed time was:\s*(.+)"), _text_setter("elapsed_time")),
    (re.compile(r"^CPU time was:\s*(.+)"), _text_setter("cpu_time")),
]


def _content_lines(text: str):
    for line in text.splitlines():
        line = line.rstrip()
        if not line or line.startswith("#"):
            continue
        yield line


def apply_result_rules(record: LoadResultRecord, line: str) -> bool:
    matched = False
    for pattern, setter in RESULT_RULES:
        match = pattern.search(line)
        if match:
            setter(record, match, line)
            matched = True
    return matched


def parse_result_text(text: str) -> LoadResultRecord:
    record = LoadResultRecord()
    for line in _content_lines(text):
        apply_result_rules(record, line)
    record.compute_success_rate()
    return record


def parse_error_text(text: str) -> Dict[str, LoadErrorEntry]:
    entries: Dict[str, LoadErrorEntry] = {}
    record_no: Optional[int] = None
    table_name = ""
    column_name = ""
    for line in _content_lines(text):
        record_match = RECORD_RE.match(line)
        if record_match:
            record_no = int(record_match.group(1))
            reason = record_match.group(2)
            table_match = RECORD_TABLE_RE.search(reason)
            column_match = RECORD_COLUMN_RE.search(reason)
            table_name = table_match.group(1) if table_match else ""
            column_name = column_match.group(1) if column_match else ""
            continue
        error_match = ORA_ERROR_RE.match(line)
        if not error_match:
            continue
        code = error_match.group(1)
        entry = entries.get(code)
        if entry is None:
            entry = LoadErrorEntry(code=code, description=error_match.group(2).strip())
            entries[code] = entry
        entry.count += 1
        entry.table_name = table_name
        entry.column_name = column_name
        if record_no is not None:
            entry.record_numbers.append(record_no)
    return entries


def format_result_report(record: LoadResultRecord, index: int = 0) -> str:
    text = record.to_line()
    if index <= 0:
        text = f"{RESULT_HEADER}\n{text}"
    return text + "\n"


def format_error_block(entry: LoadErrorEntry) -> str:
    return (
        f"{entry.code:<10}{entry.count:6d}\n"
        f"{entry.code:<10}:{entry.description}\n"
        f"{entry.code:<10}:{entry.table_name:<10}:{entry.column_name:<10} "
        f"({entry.count:3d}) {entry.record_ranges}\n"
    )


def format_error_report(
    entries: Dict[str, LoadErrorEntry],
    source_name: str,
    index: int = 0,
) -> str:
    blocks = [
        format_error_block(entries[code])
        for code in sorted(entries)
        if entries[code].record_numbers
    ]
    text = ""
    if blocks:
        text = f"{source_name}\n{'-' * len(source_name)}\n" + "\n".join(blocks)
    if index <= 0:
        text = f"{ERROR_HEADER}\n{text}"
    return text + "\n" if text else ""


def load_log_text(path: Union[str, Path]) -> str:
    log_path = Path(path)
    if not log_path.is_file():
        raise LogSourceError(log_path, "file does not exist")
    try:
        return log_path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise LogSourceError(log_path, f"could not read file ({exc})") from exc


def read_log(path: Union[str, Path], mode: LogMode, index: int = 0) -> Optional[str]:
    """
    Report segment for one loader log, or None when the log cannot be read.

    A missing or unreadable log is logged as a warning so that batch
    reports skip it and continue.
    """
    try:
        text = load_log_text(path)
    except LogSourceError as exc:
        log.warning("%s", exc)
        return None
    log.info("%3d reading %s", index, path)
    if mode is LogMode.RESULT:
        return format_result_report(parse_result_text(text), index)
    return format_error_report(parse_error_text(text), str(path), index)
