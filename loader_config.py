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
config.ini loading and file name defaulting.

Sections:
  [LOADER]   definition/output file names and generator switches
  [REPORT]   loader log directory and report file names
  [SETTINGS] log_level / log_file
"""

from __future__ import annotations

import configparser
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

log = logging.getLogger(__name__)

CONFIG_DEFAULT_PATH = "config.ini"
DEFAULT_DEF_EXT = "def"
DEFAULT_LOG_EXT = "log"
DEFAULT_MAX_ERRORS = 1000
KB = 1024


class ConfigError(Exception):
    """Custom exception for configuration issues."""


@dataclass
class LoaderSettings:
    def_file: str = ""
    src_dir: str = ""
    def_ext: str = DEFAULT_DEF_EXT
    sql_file: str = ""
    ctl_file: str = ""
    dat_file: str = ""
    bad_file: str = ""
    dis_file: str = ""
    log_file: str = ""
    spool_file: str = ""
    table_name: str = ""
    table_description: str = ""
    tablespace: str = ""
    initial_extent: str = ""
    next_extent: str = ""
    drop: bool = True
    relax_req: bool = True
    direct: bool = False
    append: bool = False
    overwrite: bool = False
    max_errors: int = DEFAULT_MAX_ERRORS


@dataclass
class ReportSettings:
    log_dir: str = ""
    log_ext: str = DEFAULT_LOG_EXT
    result_file: str = ""
    error_file: str = ""
    study_number: Optional[int] = None


@dataclass
class AppConfig:
    loader: LoaderSettings
    report: ReportSettings
    log_level: str = "AUTO"
    log_file: str = ""
    base_dir: Path = Path(".")


def parse_bool_flag(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    return text.lower() in ("1", "true", "yes", "y", "on")


def _resolve_path(base_dir: Path, raw: str) -> str:
    raw = (raw or "").strip()
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return str(path)


def _get_int(parser: configparser.ConfigParser, section: str, key: str, default: Optional[int]) -> Optional[int]:
    raw = parser.get(section, key, fallback="").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"[{section}] {key} must be an integer: {raw}") from exc


def load_config(config_path: Path) -> AppConfig:
    """Load config.ini; relative paths resolve against the config directory."""
    parser = configparser.ConfigParser(interpolation=None)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        parser.read(config_path, encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigError(f"Config file is not valid: {config_path}: {exc}") from exc

    if "LOADER" not in parser and "REPORT" not in parser:
        raise ConfigError("config.ini must include [LOADER] or [REPORT].")

    base_dir = config_path.parent.resolve()

    def get(section: str, key: str, default: str = "") -> str:
        return parser.get(section, key, fallback=default).strip()

    def get_path(section: str, key: str) -> str:
        return _resolve_path(base_dir, get(section, key))

    max_errors = _get_int(parser, "LOADER", "max_errors", DEFAULT_MAX_ERRORS)
    if max_errors is None or max_errors < 0:
        log.warning("max_errors out of range, fallback to %d", DEFAULT_MAX_ERRORS)
        max_errors = DEFAULT_MAX_ERRORS

    loader = LoaderSettings(
        def_file=get_path("LOADER", "def_file"),
        src_dir=get_path("LOADER", "src_dir"),
        def_ext=get("LOADER", "def_ext", DEFAULT_DEF_EXT).lstrip(".") or DEFAULT_DEF_EXT,
        sql_file=get_path("LOADER", "sql_file"),
        ctl_file=get_path("LOADER", "ctl_file"),
        dat_file=get_path("LOADER", "dat_file"),
        bad_file=get_path("LOADER", "bad_file"),
        dis_file=get_path("LOADER", "dis_file"),
        log_file=get_path("LOADER", "log_file"),
        spool_file=get_path("LOADER", "spool_file"),
        table_name=get("LOADER", "table_name"),
        table_description=get("LOADER", "table_description"),
        tablespace=get("LOADER", "tablespace"),
        initial_extent=get("LOADER", "initial_extent"),
        next_extent=get("LOADER", "next_extent"),
        drop=parse_bool_flag(get("LOADER", "drop"), True),
        relax_req=parse_bool_flag(get("LOADER", "relax_req"), True),
        direct=parse_bool_flag(get("LOADER", "direct"), False),
        append=parse_bool_flag(get("LOADER", "append"), False),
        overwrite=parse_bool_flag(get("LOADER", "overwrite"), False),
        max_errors=max_errors,
    )
    report = ReportSettings(
        log_dir=get_path("REPORT", "log_dir") or loader.src_dir,
        log_ext=get("REPORT", "log_ext", DEFAULT_LOG_EXT).lstrip(".") or DEFAULT_LOG_EXT,
        result_file=get_path("REPORT", "result_file"),
        error_file=get_path("REPORT", "error_file"),
        study_number=_get_int(parser, "REPORT", "study_number", None),
    )
    return AppConfig(
        loader=loader,
        report=report,
        log_level=get("SETTINGS", "log_level", "AUTO").upper() or "AUTO",
        log_file=get_path("SETTINGS", "log_file"),
        base_dir=base_dir,
    )


def _swap_suffix(path: Path, suffix: str) -> str:
    return str(path.with_suffix(suffix))


def size_extents(size_bytes: int) -> Tuple[str, str]:
    """
    Storage extents sized from the data file:
      <= 1 MB: INITIAL <KB>k, NEXT <KB/10>k
      >  1 MB: INITIAL <MB+1>m, NEXT <(MB+1)*10>k
    """
    size_kb = size_bytes // KB + 1
    if size_kb > KB:
        size_mb = size_kb // KB + 1
        return f"{size_mb}m", f"{size_mb * 10}k"
    return f"{size_kb}k", f"{size_kb // 10}k"


def resolve_file_names(settings: LoaderSettings, reset: bool = False) -> LoaderSettings:
    """
    Fill unset companion names from the data (or definition) file base name.

    With reset=True the log/discard/bad names are always re-derived, which
    is what a batch run needs when it moves from one definition to the next.
    """
    resolved = replace(settings)
    source = resolved.def_file or resolved.dat_file
    if source:
        base = Path(source)
        if reset or not resolved.log_file:
            resolved.log_file = _swap_suffix(base, ".log")
        if reset or not resolved.dis_file:
            resolved.dis_file = _swap_suffix(base, ".dis")
        if reset or not resolved.bad_file:
            resolved.bad_file = _swap_suffix(base, ".bad")
        if not resolved.dat_file:
            resolved.dat_file = _swap_suffix(base, ".dat")
        if not resolved.sql_file:
            resolved.sql_file = _swap_suffix(base, ".sql")
        if not resolved.ctl_file:
            resolved.ctl_file = _swap_suffix(base, ".ctl")
        if not resolved.table_name:
            resolved.table_name = base.stem

        dat_path = Path(resolved.dat_file)
        if dat_path.is_file() and not (resolved.initial_extent or resolved.next_extent):
            resolved.initial_extent, resolved.next_extent = size_extents(dat_path.stat().st_size)

    if resolved.sql_file:
        sql_path = Path(resolved.sql_file)
        if reset or not resolved.spool_file:
            resolved.spool_file = _swap_suffix(sql_path, ".lst")
        if not resolved.table_name:
            resolved.table_name = sql_path.stem
    return resolved


def default_report_path(report: ReportSettings, kind: str) -> Path:
    """S090_ldr.rst from study_number, else <parent of log_dir>_ldr.rst."""
    if kind not in ("rst", "err"):
        raise ValueError(f"unknown report kind: {kind}")
    explicit = report.result_file if kind == "rst" else report.error_file
    if explicit:
        return Path(explicit)
    log_dir = Path(report.log_dir or ".").resolve()
    if report.study_number is not None:
        name = f"S{report.study_number:03d}_ldr.{kind}"
    else:
        name = f"{log_dir.parent.name or log_dir.name}_ldr.{kind}"
    return log_dir / name
