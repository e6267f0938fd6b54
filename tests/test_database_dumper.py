"""
Unit tests for database_dumper.py
"""

import io
from unittest import mock

import pytest

from modump.database_dumper import DatabaseDumper
from modump.errors import InvalidInputError, NotSupportedError
from modump.models import Column, DumpOptions, DumpStats, Table

CREATE_T1 = "CREATE TABLE `t1` (\n  `a` INT DEFAULT NULL\n)"


@pytest.fixture
def conn():
    """Mock connection for database `t` holding one empty table `t1`."""
    conn = mock.MagicMock()
    conn.get_database_type.return_value = ""
    conn.get_create_database.return_value = "CREATE DATABASE `t`"
    conn.get_tables.return_value = [Table("t1", "r")]
    conn.get_create_table.return_value = CREATE_T1
    conn.stream_rows.side_effect = lambda query: ([Column.from_type_name("a", "INT")], iter([]))
    return conn


def run_dump(conn, **options):
    out = io.BytesIO()
    dumper = DatabaseDumper(conn, DumpOptions(**{"databases": ["t"], **options}), out)
    stats = dumper.run()
    return out.getvalue().decode("utf-8"), stats


class TestRun:
    """Tests for DatabaseDumper.run."""

    def test_empty_table(self, conn):
        """A table with no rows gets its DDL and no INSERT."""
        output, stats = run_dump(conn)
        assert output == (
            "SET foreign_key_checks = 0;\n\n"
            "DROP DATABASE IF EXISTS `t`;\n"
            "CREATE DATABASE `t`;\n"
            "USE `t`;\n\n\n"
            "DROP TABLE IF EXISTS `t1`;\n"
            f"{CREATE_T1};\n"
            "\n\n\n"
            "SET foreign_key_checks = 1;\n"
        )
        assert "INSERT" not in output
        assert isinstance(stats, DumpStats)
        assert stats.total_tables == 1
        assert stats.total_rows == 0

    def test_rows_dumped(self, conn):
        conn.stream_rows.side_effect = lambda query: (
            [Column.from_type_name("a", "INT")], iter([(b"1",), (b"2",), (b"3",)])
        )
        output, stats = run_dump(conn)
        assert "INSERT INTO `t1` VALUES (1),(2),(3);\n" in output
        assert stats.total_rows == 3
        assert stats.databases[0].total_rows == 3
        conn.stream_rows.assert_called_once_with("SELECT * FROM `t`.`t1`")

    def test_where_clause(self, conn):
        run_dump(conn, where="a > 1")
        conn.stream_rows.assert_called_once_with("SELECT * FROM `t`.`t1` WHERE a > 1")

    def test_no_data(self, conn):
        output, _ = run_dump(conn, no_data=True)
        assert f"{CREATE_T1};\n" in output
        conn.stream_rows.assert_not_called()
        assert "INSERT" not in output

    def test_create_statement_with_semicolon(self, conn):
        conn.get_create_table.return_value = "CREATE TABLE `t1` (a int);"
        output, _ = run_dump(conn, no_data=True)
        assert "CREATE TABLE `t1` (a int);\n" in output
        assert ";;" not in output

    def test_views_in_dependency_order(self, conn):
        conn.get_tables.return_value = [
            Table("v2", "v"),
            Table("t1", "r"),
            Table("v1", "v"),
        ]
        conn.get_create_view.side_effect = lambda db, name: {
            "v1": "CREATE VIEW `v1` AS SELECT * FROM t1",
            "v2": "CREATE VIEW `v2` AS SELECT * FROM v1",
        }[name]

        output, _ = run_dump(conn, no_data=True)

        t1 = output.index("DROP TABLE IF EXISTS `t1`;")
        v1 = output.index("DROP VIEW IF EXISTS `v1`;")
        v2 = output.index("DROP VIEW IF EXISTS `v2`;")
        assert t1 < v1 < v2
        assert "DROP VIEW IF EXISTS `v1`;\nCREATE VIEW `v1` AS SELECT * FROM t1;\n\n\n" in output
        conn.get_create_table.assert_called_once_with("t", "t1")

    def test_external_table(self, conn):
        conn.get_tables.return_value = [Table("ext", "e")]
        conn.get_create_table.return_value = "CREATE EXTERNAL TABLE `ext` (a int) INFILE 'x.csv'"

        output, stats = run_dump(conn)

        assert (
            "/*!EXTERNAL TABLE `ext`*/\n"
            "DROP TABLE IF EXISTS `ext`;\n"
            "CREATE EXTERNAL TABLE `ext` (a int) INFILE 'x.csv';\n\n\n"
        ) in output
        conn.stream_rows.assert_not_called()
        assert stats.databases[0].tables[0].kind == "e"

    def test_unsupported_kind(self, conn):
        conn.get_tables.return_value = [Table("t1", "r"), Table("seq", "S")]
        with pytest.raises(NotSupportedError) as exc_info:
            run_dump(conn)
        assert "seq" in str(exc_info.value)

    def test_table_subset_skips_database_header(self, conn):
        output, _ = run_dump(conn, tables=["t1"])
        assert "DROP DATABASE" not in output
        assert "USE `t`" not in output
        conn.get_tables.assert_called_once_with("t", ["t1"], False)

    def test_all_databases(self, conn):
        conn.get_databases.return_value = ["t", "u"]
        conn.get_create_database.side_effect = lambda db: f"CREATE DATABASE `{db}`"

        output, stats = run_dump(conn, databases=["all"], no_data=True)

        assert output.index("USE `t`;") < output.index("USE `u`;")
        assert [db.name for db in stats.databases] == ["t", "u"]

    def test_subscription_database(self, conn):
        conn.get_database_type.return_value = "subscription"
        conn.get_subscription_tables.return_value = [Table("t1", "r")]

        output, _ = run_dump(conn, databases=["sub"], no_data=True)

        assert "CREATE DATABASE IF NOT EXISTS `sub`;\n" in output
        conn.get_create_database.assert_not_called()
        conn.get_tables.assert_not_called()
        conn.get_subscription_tables.assert_called_once_with("sub", [])

    def test_sys_account_passed_to_catalog(self, conn):
        run_dump(conn, sys_account=True, no_data=True)
        conn.get_database_type.assert_called_once_with("t", True)
        conn.get_tables.assert_called_once_with("t", [], True)

    def test_missing_database_aborts(self, conn):
        conn.get_database_type.side_effect = InvalidInputError("database t not exists")
        with pytest.raises(InvalidInputError):
            run_dump(conn)

    def test_error_keeps_flushed_output(self, conn):
        conn.get_tables.return_value = [Table("t1", "r"), Table("t2", "r")]

        def stream_rows(query):
            if "`t2`" in query:
                raise OSError("read failed")
            return [Column.from_type_name("a", "INT")], iter([(b"1",)])

        conn.stream_rows.side_effect = stream_rows
        out = io.BytesIO()
        dumper = DatabaseDumper(conn, DumpOptions(databases=["t"]), out)

        with pytest.raises(OSError):
            dumper.run()
        assert b"INSERT INTO `t1` VALUES (1);\n" in out.getvalue()
        assert b"SET foreign_key_checks = 1;" not in out.getvalue()


class TestPlan:
    """Tests for DatabaseDumper.plan."""

    def test_plan_orders_definitions(self, conn):
        conn.get_tables.return_value = [Table("v1", "v"), Table("t1", "r")]
        conn.get_create_view.return_value = "CREATE VIEW `v1` AS SELECT * FROM t1"
        dumper = DatabaseDumper(conn, DumpOptions(databases=["t"]), io.BytesIO())

        db_type, definitions = dumper.plan("t")

        assert db_type == ""
        assert [d.table.name for d in definitions] == ["t1", "v1"]
        assert definitions[0].create_sql == CREATE_T1

    def test_resolve_databases(self, conn):
        dumper = DatabaseDumper(conn, DumpOptions(databases=["a", "b"]), io.BytesIO())
        assert dumper.resolve_databases() == ["a", "b"]
        conn.get_databases.assert_not_called()
