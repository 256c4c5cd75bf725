import unittest

import column_defs as cd
import ctl_generator as cg


COLUMNS = [
    cd.ColumnDef(name="studyno", type=cd.ColumnType.NUMERIC, width=3),
    cd.ColumnDef(name="initials", type=cd.ColumnType.CHARACTER, width=3),
    cd.ColumnDef(name="visitdt", type=cd.ColumnType.DATE, date_format="mm/dd/yyyy"),
    cd.ColumnDef(name="comments", type=cd.ColumnType.CHARACTER, max_length=200),
]


def field_lines(ctl: str):
    lines = ctl.splitlines()
    start = lines.index("(")
    return lines[start + 1:]


class TestGenerateCtl(unittest.TestCase):
    def test_header_and_companion_files(self) -> None:
        ctl = cg.generate_ctl(COLUMNS, cg.LoadOptions(data_file="/load/s083p001.dat"))
        lines = ctl.splitlines()
        self.assertEqual(lines[0], "OPTIONS (ERRORS=1000,SILENT=FEEDBACK)")
        self.assertEqual(lines[1], "LOAD DATA")
        self.assertEqual(lines[2], "INFILE '/load/s083p001.dat'")
        self.assertEqual(lines[3], "BADFILE '/load/s083p001.bad'")
        self.assertEqual(lines[4], "DISCARDFILE '/load/s083p001.dis'")
        self.assertEqual(lines[5], "REPLACE INTO TABLE s083p001")
        self.assertEqual(lines[6], "FIELDS TERMINATED BY \"|\" OPTIONALLY ENCLOSED BY \"'\"")
        self.assertEqual(lines[7], "    TRAILING NULLCOLS")

    def test_field_lines(self) -> None:
        ctl = cg.generate_ctl(COLUMNS, cg.LoadOptions(data_file="x.dat", table_name="T"))
        self.assertEqual(
            field_lines(ctl),
            [
                '    "STUDYNO",',
                '    "INITIALS" char(3),',
                '    "VISITDT" date "MM/DD/YYYY" NULLIF "VISITDT"=BLANKS,',
                '    "COMMENTS" char(200))',
            ],
        )

    def test_n_fields_last_closed(self) -> None:
        for count in (1, 2, 5):
            cols = [cd.ColumnDef(name=f"C{i}", type=cd.ColumnType.NUMERIC, width=4) for i in range(count)]
            fields = field_lines(cg.generate_ctl(cols, cg.LoadOptions(data_file="x.dat")))
            self.assertEqual(len(fields), count)
            self.assertTrue(fields[-1].endswith(")"))
            for line in fields[:-1]:
                self.assertTrue(line.endswith(","))

    def test_direct_path_and_append(self) -> None:
        opts = cg.LoadOptions(data_file="x.dat", direct=True, replace=False, max_errors=50)
        lines = cg.generate_ctl(COLUMNS, opts).splitlines()
        self.assertEqual(lines[0], "OPTIONS (ERRORS=50,SILENT=FEEDBACK,DIRECT=TRUE)")
        self.assertEqual(lines[1], "UNRECOVERABLE")
        self.assertIn("APPEND INTO TABLE x", lines)

    def test_explicit_files_and_table_precedence(self) -> None:
        opts = cg.LoadOptions(
            data_file="/in/a.dat",
            bad_file="/rej/a.bad",
            discard_file="/rej/a.dsc",
        )
        ctl = cg.generate_ctl(COLUMNS, opts, cd.TableMeta(table_name="META_T"))
        self.assertIn("BADFILE '/rej/a.bad'", ctl)
        self.assertIn("DISCARDFILE '/rej/a.dsc'", ctl)
        self.assertIn("REPLACE INTO TABLE META_T", ctl)

    def test_resolve_load_files_from_control_file(self) -> None:
        files = cg.resolve_load_files(cg.LoadOptions(ctl_file="/load/p1.ctl"))
        self.assertEqual(files.data_file, "/load/p1.dat")
        self.assertEqual(files.bad_file, "/load/p1.bad")
        self.assertEqual(files.discard_file, "/load/p1.dis")
        self.assertEqual(files.log_file, "/load/p1.log")

    def test_date_without_mask(self) -> None:
        col = cd.ColumnDef(name="D1", type="date")
        self.assertEqual(cg.field_spec(col), '    "D1" date NULLIF "D1"=BLANKS')


if __name__ == "__main__":
    unittest.main()
