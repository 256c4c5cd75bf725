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
Oracle table DDL / SQL*Loader control file generator and load reporter.

Reads config.ini ([LOADER], [REPORT], [SETTINGS]) and:
1) sql            - writes the CREATE TABLE script for def_file.
2) ctl            - writes the SQL*Loader control file for def_file.
3) batch          - does both for every *.def in src_dir.
4) report-results - summarizes every SQL*Loader log in log_dir.
5) report-errors  - groups rejected records by ORA code for every log.

Usage:
    python3 oracle_loader.py [config.ini] <command>
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from column_defs import DefinitionSourceError, TableDefinition, read_definition
from ctl_generator import LoadOptions, generate_ctl
from ddl_generator import BatchPosition, DdlOptions, generate_ddl
from loader_config import (
    CONFIG_DEFAULT_PATH,
    AppConfig,
    ConfigError,
    LoaderSettings,
    ReportSettings,
    default_report_path,
    load_config,
    resolve_file_names,
)
from sqlldr_log import LogMode, read_log
from tool_version import __version__

COMMANDS = ("sql", "ctl", "batch", "report-results", "report-errors")

LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

log = logging.getLogger(__name__)


class OutputExistsError(Exception):
    """Output file exists and neither overwrite nor append is enabled."""


def _build_console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        level=level,
        show_time=True,
        omit_repeated_times=False,
        show_level=True,
        show_path=False,
        rich_tracebacks=False,
        log_time_format=LOG_TIME_FORMAT
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def init_console_logging(level: int = logging.INFO) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.FileHandler):
            continue
        root_logger.removeHandler(handler)
    root_logger.addHandler(_build_console_handler(level))


def init_file_logging(log_file: str) -> Optional[Path]:
    if not log_file:
        return None
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_TIME_FORMAT))
    logging.getLogger().addHandler(handler)
    return path


def resolve_console_log_level(level_name: Optional[str], *, is_tty: Optional[bool] = None) -> int:
    if is_tty is None:
        try:
            is_tty = sys.stdout.isatty()
        except Exception as exc:
            log.debug("TTY detection failed, defaulting to non-tty: %s", exc)
            is_tty = False
    name = (level_name or "AUTO").strip().upper()
    if name == "AUTO":
        return logging.INFO if is_tty else logging.WARNING
    if hasattr(logging, name):
        return getattr(logging, name)
    return logging.INFO


def prepare_output(path: Path, overwrite: bool, append: bool) -> str:
    """Return the open mode for an output file, refusing to clobber it."""
    if path.exists() and not append:
        if not overwrite:
            raise OutputExistsError(f"File {path} exists (set overwrite = true to replace it)")
        path.unlink()
    path.parent.mkdir(parents=True, exist_ok=True)
    return "a" if append else "w"


def write_output(path: Path, text: str, mode: str) -> None:
    with path.open(mode, encoding="utf-8") as handle:
        handle.write(text)


def build_ddl_options(settings: LoaderSettings, position: BatchPosition) -> DdlOptions:
    return DdlOptions(
        table_name=settings.table_name,
        drop=settings.drop,
        relax_constraints=settings.relax_req,
        initial_extent=settings.initial_extent,
        next_extent=settings.next_extent,
        tablespace=settings.tablespace,
        spool_file=settings.spool_file,
        sql_file=settings.sql_file,
        position=position,
    )


def build_load_options(settings: LoaderSettings) -> LoadOptions:
    return LoadOptions(
        data_file=settings.dat_file,
        ctl_file=settings.ctl_file,
        bad_file=settings.bad_file,
        discard_file=settings.dis_file,
        log_file=settings.log_file,
        table_name=settings.table_name,
        replace=settings.drop,
        direct=settings.direct,
        max_errors=settings.max_errors,
    )


def load_definition(settings: LoaderSettings) -> TableDefinition:
    if not settings.def_file:
        raise DefinitionSourceError("", "No definition file name is specified")
    return read_definition(settings.def_file, settings.table_description)


def run_sql(settings: LoaderSettings) -> Path:
    settings = resolve_file_names(settings)
    definition = load_definition(settings)
    sql_path = Path(settings.sql_file)
    position = BatchPosition.ONLY
    if settings.append:
        # appended tables share the first run's spool session; none of them exits
        position = BatchPosition.MIDDLE if sql_path.exists() else BatchPosition.FIRST
    mode = prepare_output(sql_path, settings.overwrite, settings.append)
    log.info("Creating %s (sql)", sql_path)
    write_output(
        sql_path,
        generate_ddl(definition.columns, build_ddl_options(settings, position), definition.meta),
        mode,
    )
    return sql_path


def run_ctl(settings: LoaderSettings) -> Path:
    settings = resolve_file_names(settings)
    definition = load_definition(settings)
    if settings.dat_file and not Path(settings.dat_file).is_file():
        log.warning("Input data file - %s does not exist.", settings.dat_file)
    ctl_path = Path(settings.ctl_file)
    mode = prepare_output(ctl_path, settings.overwrite, False)
    log.info("Creating %s (ctl)", ctl_path)
    write_output(ctl_path, generate_ctl(definition.columns, build_load_options(settings), definition.meta), mode)
    return ctl_path


@dataclass
class BatchItem:
    def_file: Path
    table_name: str
    columns: int
    sql_file: Path
    ctl_file: Path


def list_source_files(src_dir: Path, ext: str) -> List[Path]:
    if not src_dir.is_dir():
        raise ConfigError(f"Could not find source directory - {src_dir}")
    return sorted(path for path in src_dir.iterdir() if path.is_file() and path.name.endswith(f".{ext}"))


def run_batch(settings: LoaderSettings) -> List[BatchItem]:
    """
    Generate DDL and control files for every definition file in src_dir.

    With append on, every table goes into the single sql_file and only the
    first/last tables open/close the spool session; otherwise each
    definition gets its own .sql next to it.
    """
    src_dir = Path(settings.src_dir or ".")
    def_files = list_source_files(src_dir, settings.def_ext)
    if not def_files:
        log.warning("No definition files in %s!", src_dir)
        return []
    log.info("Batch loading data from %s", src_dir)

    shared_sql = settings.sql_file if settings.append else ""
    if settings.append and not shared_sql:
        shared_sql = str(src_dir / f"{src_dir.name or 'batch'}.sql")
    if shared_sql:
        prepare_output(Path(shared_sql), overwrite=True, append=False)

    items: List[BatchItem] = []
    total = len(def_files)
    for idx, def_file in enumerate(def_files):
        log.info(" %2d %s", idx, def_file)
        per_file = resolve_file_names(
            replace(
                settings,
                def_file=str(def_file),
                dat_file="",
                ctl_file="",
                bad_file="",
                dis_file="",
                log_file="",
                table_name="",
                sql_file=shared_sql,
                spool_file="",
            ),
            reset=True,
        )
        definition = read_definition(def_file, settings.table_description)
        position = BatchPosition.for_index(idx, total) if shared_sql else BatchPosition.ONLY

        # batch output is regenerated on every run
        sql_path = Path(per_file.sql_file)
        write_output(
            sql_path,
            generate_ddl(definition.columns, build_ddl_options(per_file, position), definition.meta),
            "a" if shared_sql else "w",
        )
        ctl_path = Path(per_file.ctl_file)
        write_output(
            ctl_path,
            generate_ctl(definition.columns, build_load_options(per_file), definition.meta),
            "w",
        )
        items.append(BatchItem(
            def_file=def_file,
            table_name=per_file.table_name,
            columns=len(definition.columns),
            sql_file=sql_path,
            ctl_file=ctl_path,
        ))
    return items


def print_batch_summary(items: Sequence[BatchItem], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title="Generated load files", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Definition")
    table.add_column("Table")
    table.add_column("Columns", justify="right")
    table.add_column("SQL")
    table.add_column("CTL")
    for idx, item in enumerate(items, start=1):
        table.add_row(
            str(idx),
            item.def_file.name,
            item.table_name,
            str(item.columns),
            item.sql_file.name,
            item.ctl_file.name,
        )
    console.print(table)


def run_report(report: ReportSettings, loader: LoaderSettings, mode: LogMode) -> Optional[Path]:
    """
    Append one report segment per log file; unreadable logs are skipped.

    The report file is truncated first when overwrite is on and append off.
    """
    log_dir = Path(report.log_dir or ".")
    log_files = list_source_files(log_dir, report.log_ext)
    if not log_files:
        log.warning("No log files in %s!", log_dir)
        return None
    report_path = default_report_path(report, "rst" if mode is LogMode.RESULT else "err")
    if report_path.exists() and loader.overwrite and not loader.append:
        report_path.unlink()
    report_path.parent.mkdir(parents=True, exist_ok=True)
    log.info("Getting load %ss from %s to report file %s", mode.value, log_dir, report_path)

    skipped = 0
    written = 0
    with report_path.open("a", encoding="utf-8") as handle:
        for log_path in log_files:
            if mode is LogMode.RESULT and log_path.stat().st_size == 0:
                handle.write(f"# WARNING: no content in {log_path}\n")
                continue
            # the header goes with the first segment actually written
            segment = read_log(log_path, mode, written)
            if segment is None:
                skipped += 1
                continue
            handle.write(segment)
            written += 1
    if skipped:
        log.warning("Skipped %d unreadable log file(s)", skipped)
    return report_path


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    desc = textwrap.dedent(
        """\
        Oracle table DDL / SQL*Loader control file generator and load reporter.

        Commands:
          sql            : write CREATE TABLE script for [LOADER] def_file
          ctl            : write SQL*Loader control file for [LOADER] def_file
          batch          : sql + ctl for every *.def under [LOADER] src_dir
          report-results : load result report for logs under [REPORT] log_dir
          report-errors  : ORA error report for logs under [REPORT] log_dir

        Version: {version}
        """
    ).format(version=__version__)
    parser = argparse.ArgumentParser(
        description=desc,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "config",
        nargs="?",
        default=CONFIG_DEFAULT_PATH,
        help="config.ini path (default: config.ini)",
    )
    parser.add_argument("command", choices=COMMANDS, help="action to run")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("--def-file", default="", help="override [LOADER] def_file")
    parser.add_argument("--src-dir", default="", help="override [LOADER] src_dir")
    parser.add_argument("--log-dir", default="", help="override [REPORT] log_dir")
    parser.add_argument("--overwrite", action="store_true", help="replace existing output files")
    return parser.parse_args(argv)


def apply_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    loader = cfg.loader
    report = cfg.report
    if args.def_file:
        loader = replace(loader, def_file=str(Path(args.def_file).expanduser().resolve()))
    if args.src_dir:
        loader = replace(loader, src_dir=str(Path(args.src_dir).expanduser().resolve()))
    if args.overwrite:
        loader = replace(loader, overwrite=True)
    if args.log_dir:
        report = replace(report, log_dir=str(Path(args.log_dir).expanduser().resolve()))
    return replace(cfg, loader=loader, report=report)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    init_console_logging()
    config_path = Path(args.config).expanduser()
    try:
        cfg = apply_overrides(load_config(config_path.resolve()), args)
    except ConfigError as exc:
        log.error("Config error: %s", exc)
        return 1

    level_name = cfg.log_level
    level = resolve_console_log_level(level_name)
    if level_name not in ("AUTO", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        log.warning("Unknown log_level: %s, using %s", level_name, logging.getLevelName(level))
    init_console_logging(level)
    log_path = init_file_logging(cfg.log_file)
    if log_path:
        log.info("Log file: %s", log_path)
    log.info("oracle_loader v%s", __version__)

    try:
        if args.command == "sql":
            log.info("SQL script written: %s", run_sql(cfg.loader))
        elif args.command == "ctl":
            log.info("Control file written: %s", run_ctl(cfg.loader))
        elif args.command == "batch":
            items = run_batch(cfg.loader)
            if items:
                print_batch_summary(items)
        elif args.command == "report-results":
            report_path = run_report(cfg.report, cfg.loader, LogMode.RESULT)
            if report_path:
                log.info("Result report written: %s", report_path)
        else:
            report_path = run_report(cfg.report, cfg.loader, LogMode.ERROR)
            if report_path:
                log.info("Error report written: %s", report_path)
    except (ConfigError, DefinitionSourceError, OutputExistsError) as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
