import unittest
import warnings
from datetime import datetime

import column_defs as cd
import ddl_generator as dg

NOW = datetime(2004, 7, 6, 13, 19, 52)


def parse(lines):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", cd.MalformedFieldWarning)
        return cd.parse_definition_lines(lines)


def create_table_lines(ddl: str):
    lines = ddl.splitlines()
    start = next(i for i, line in enumerate(lines) if line.startswith("CREATE TABLE"))
    body = []
    for line in lines[start + 1:]:
        body.append(line)
        if line.rstrip(";").endswith(")"):
            break
    return body


class TestGenerateDdl(unittest.TestCase):
    def test_documented_example(self) -> None:
        definition = parse([
            "||STUDYNO|3|number||Study Number|not null",
            "||CENTERNO|3|number||Center Number|",
        ])
        ddl = dg.generate_ddl(
            definition.columns,
            dg.DdlOptions(table_name="S083P001", drop=True, relax_constraints=False),
            definition.meta,
            now=NOW,
        )
        lines = ddl.splitlines()
        drop_idx = lines.index("DROP TABLE S083P001;")
        create_idx = lines.index("CREATE TABLE S083P001 (")
        self.assertLess(drop_idx, create_idx)
        self.assertEqual(lines[create_idx + 1], '    "STUDYNO" NUMBER(3) NOT NULL,')
        self.assertEqual(lines[create_idx + 2], '    "CENTERNO" NUMBER(3));')
        self.assertIn("GRANT SELECT ON S083P001 TO PUBLIC;", lines)
        self.assertIn('COMMENT ON COLUMN S083P001."STUDYNO" IS', lines)
        self.assertIn("  'Study Number';", lines)

    def test_one_column_line_per_definition_line(self) -> None:
        definition = parse([
            "# comment",
            "||A|3|1|||",
            "",
            "||B|10|2|||",
            "||C|10|3|YYMMDD10||",
            "||D|8.2|1|||Y",
        ])
        ddl = dg.generate_ddl(definition.columns, dg.DdlOptions(table_name="T"), now=NOW)
        body = create_table_lines(ddl)
        self.assertEqual(len(body), 4)
        self.assertEqual(
            [line.split()[0] for line in body],
            ['"A"', '"B"', '"C"', '"D"'],
        )
        self.assertEqual(body[1], '    "B" VARCHAR2(10),')
        self.assertEqual(body[2], '    "C" DATE,')
        self.assertEqual(body[3], '    "D" NUMBER(8,2) NOT NULL);')

    def test_no_drop_comments_out_drop(self) -> None:
        col = cd.ColumnDef(name="A", type=cd.ColumnType.NUMERIC, width=3)
        ddl = dg.generate_ddl([col], dg.DdlOptions(table_name="T", drop=False), now=NOW)
        self.assertIn("-- DROP TABLE T;", ddl.splitlines())
        self.assertNotIn("DROP TABLE T;", ddl.splitlines())

    def test_header_comments(self) -> None:
        col = cd.ColumnDef(name="A")
        ddl = dg.generate_ddl([col], dg.DdlOptions(table_name="T", sql_file="/tmp/t.sql"), now=NOW)
        lines = ddl.splitlines()
        self.assertEqual(lines[0], "REM file name: /tmp/t.sql")
        self.assertEqual(lines[1], "REM created at Tue Jul 06 13:19:52 2004")
        self.assertTrue(lines[2].startswith("REM created by"))

    def test_storage_and_tablespace(self) -> None:
        col = cd.ColumnDef(name="A", type=cd.ColumnType.NUMERIC, width=3)
        ddl = dg.generate_ddl(
            [col],
            dg.DdlOptions(table_name="T", tablespace="DATA_TS", initial_extent="21k", next_extent="2k"),
            now=NOW,
        )
        self.assertIn(
            '    "A" NUMBER(3))\nTABLESPACE DATA_TS\nSTORAGE (\n  INITIAL 21k\n  NEXT    2k\n);\n',
            ddl,
        )

    def test_storage_only_configured_extent(self) -> None:
        col = cd.ColumnDef(name="A", type=cd.ColumnType.NUMERIC, width=3)
        ddl = dg.generate_ddl([col], dg.DdlOptions(table_name="T", next_extent="5k"), now=NOW)
        self.assertIn('    "A" NUMBER(3))\nSTORAGE (\n  NEXT    5k\n);\n', ddl)
        self.assertNotIn("INITIAL", ddl)
        self.assertNotIn("TABLESPACE", ddl)

    def test_table_name_resolution(self) -> None:
        meta = cd.TableMeta(table_name="FROM_META")
        self.assertEqual(dg.resolve_table_name("EXPLICIT", meta, "PRIOR"), "EXPLICIT")
        self.assertEqual(dg.resolve_table_name("", meta, "PRIOR"), "FROM_META")
        self.assertEqual(dg.resolve_table_name("", cd.TableMeta(), "PRIOR"), "PRIOR")
        self.assertEqual(dg.resolve_table_name("", None, "PRIOR"), "PRIOR")

    def test_comments_are_sanitized(self) -> None:
        col = cd.ColumnDef(name="A", description="Patient's R&D code")
        meta = cd.TableMeta(table_name="T", table_description="Ann's plate & visits")
        ddl = dg.generate_ddl([col, cd.ColumnDef(name="B")], dg.DdlOptions(), meta, now=NOW)
        self.assertIn("COMMENT ON TABLE T IS\n  'Ann s plate and visits';", ddl)
        self.assertIn("COMMENT ON COLUMN T.\"A\" IS\n  'Patient s RandD code';", ddl)
        self.assertNotIn('T."B"', ddl)


class TestRelaxConstraints(unittest.TestCase):
    def render(self, name: str, required, relax: bool) -> str:
        col = cd.ColumnDef(name=name, type=cd.ColumnType.NUMERIC, width=9, required=required)
        return dg.column_line(col, relax)

    def test_required_id_column_strict(self) -> None:
        self.assertTrue(self.render("JOB_ID", True, False).endswith("NOT NULL"))

    def test_required_id_column_relaxed(self) -> None:
        self.assertTrue(self.render("JOB_ID", True, True).endswith("NOT NULL"))
        self.assertTrue(self.render("idno", True, True).endswith("NOT NULL"))

    def test_required_plain_column_relaxed(self) -> None:
        self.assertNotIn("NOT NULL", self.render("STUDYNO", True, True))
        self.assertTrue(self.render("STUDYNO", True, False).endswith("NOT NULL"))

    def test_embedded_id_is_not_a_marker(self) -> None:
        self.assertNotIn("NOT NULL", self.render("PATIDNO", True, True))
        self.assertTrue(self.render("PATIDNO", True, False).endswith("NOT NULL"))

    def test_not_required_unaffected_by_relax(self) -> None:
        self.assertEqual(self.render("STUDYNO", False, True), self.render("STUDYNO", False, False))
        self.assertNotIn("NOT NULL", self.render("JOB_ID", False, False))

    def test_literal_constraint_passthrough(self) -> None:
        line = self.render("AGE", "check (age > 0)", False)
        self.assertTrue(line.endswith("CHECK (AGE > 0)"))


class TestBatchPosition(unittest.TestCase):
    def test_for_index(self) -> None:
        self.assertEqual(dg.BatchPosition.for_index(0, 1), dg.BatchPosition.ONLY)
        self.assertEqual(dg.BatchPosition.for_index(0, 3), dg.BatchPosition.FIRST)
        self.assertEqual(dg.BatchPosition.for_index(1, 3), dg.BatchPosition.MIDDLE)
        self.assertEqual(dg.BatchPosition.for_index(2, 3), dg.BatchPosition.LAST)

    def test_spool_bracketing(self) -> None:
        col = cd.ColumnDef(name="A")

        def render(position):
            opts = dg.DdlOptions(table_name="T", spool_file="/tmp/all.lst", position=position)
            return dg.generate_ddl([col], opts, now=NOW).splitlines()

        first = render(dg.BatchPosition.FIRST)
        self.assertIn("spool /tmp/all.lst", first)
        self.assertNotIn("spool off", first)
        self.assertNotIn("exit", first)

        middle = render(dg.BatchPosition.MIDDLE)
        self.assertFalse(any(line.startswith("spool") for line in middle))
        self.assertNotIn("exit", middle)

        last = render(dg.BatchPosition.LAST)
        self.assertNotIn("spool /tmp/all.lst", last)
        self.assertEqual(last[-2:], ["spool off", "exit"])

        only = render(dg.BatchPosition.ONLY)
        self.assertIn("spool /tmp/all.lst", only)
        self.assertEqual(only[-2:], ["spool off", "exit"])


if __name__ == "__main__":
    unittest.main()
