"""
Tests for main.py CLI functionality.
"""
import json
import sqlite3

import pytest

from schemasync.main import database_url, format_plan, main, read_sql_source
from schemasync.models import Classification


@pytest.fixture
def schema_file(tmp_path):
    f = tmp_path / "schema.sql"
    f.write_text("CREATE TABLE users(id INTEGER PRIMARY KEY, name TEXT);\n")
    return f


class TestReadSqlSource:
    """Test read_sql_source function"""

    def test_read_single_file(self, schema_file):
        assert 'CREATE TABLE users' in read_sql_source(str(schema_file))

    def test_read_directory_sorted(self, tmp_path):
        (tmp_path / "b.sql").write_text("CREATE TABLE b(x);")
        nested = tmp_path / "nested"
        nested.mkdir()
        (nested / "a.sql").write_text("CREATE TABLE a(x);")
        (tmp_path / "notes.txt").write_text("ignored")

        content = read_sql_source(str(tmp_path))

        assert content.index("CREATE TABLE b") < content.index("CREATE TABLE a")
        assert "ignored" not in content

    def test_empty_directory(self, tmp_path):
        with pytest.raises(ValueError, match="No .sql files"):
            read_sql_source(str(tmp_path))

    def test_missing_path(self, tmp_path):
        with pytest.raises(ValueError, match="Path not found"):
            read_sql_source(str(tmp_path / "missing.sql"))


class TestDatabaseUrl:

    def test_plain_path(self):
        assert database_url("data/app.db") == "sqlite:///data/app.db"

    def test_sqlite_url(self):
        assert database_url("sqlite:///app.db") == "sqlite:///app.db"

    def test_other_backend_rejected(self):
        with pytest.raises(ValueError, match="Only SQLite"):
            database_url("postgresql://user@localhost/app")


class TestFormatPlan:

    def test_no_changes(self):
        assert "No changes detected." in format_plan(Classification(), no_color=True)

    def test_lists_changes(self):
        classification = Classification(
            new_tables=["posts"], removed_tables=["legacy"], modified_tables=["users"],
            changed_indices=["idx"], pragma_changes={"user_version": (1, 2)},
        )

        output = format_plan(classification, no_color=True)

        assert "+ Create Table: posts" in output
        assert "- Drop Table: legacy" in output
        assert "~ Rebuild Table: users" in output
        assert "~ Recreate Index: idx" in output
        assert "~ Set Pragma: user_version 1 -> 2" in output
        assert "\033[" not in output


class TestMain:

    def test_migrate_then_up_to_date(self, tmp_path, schema_file, capsys):
        db_path = tmp_path / "app.db"
        argv = ['migrate', '--database', str(db_path), '--schema', str(schema_file), '--no-color']

        assert main(argv) == 0
        assert "Database migration completed successfully." in capsys.readouterr().out

        assert main(argv) == 0
        assert "Database is already up to date." in capsys.readouterr().out

        conn = sqlite3.connect(str(db_path))
        try:
            assert [r[1] for r in conn.execute("PRAGMA table_info(users)")] == ["id", "name"]
        finally:
            conn.close()

    def test_migrate_with_sqlite_url_and_json_out(self, tmp_path, schema_file):
        db_path = tmp_path / "app.db"
        json_path = tmp_path / "log.json"

        code = main([
            'migrate', '--database', f"sqlite:///{db_path}", '--schema', str(schema_file),
            '--json-out', str(json_path), '--no-color',
        ])

        assert code == 0
        log = json.loads(json_path.read_text())
        assert log["changed"] is True
        assert log["records"][0]["kind"] == "CREATE_TABLE"

    def test_refuses_deletion(self, tmp_path, schema_file, capsys):
        db_path = tmp_path / "app.db"
        conn = sqlite3.connect(str(db_path))
        conn.execute("CREATE TABLE legacy(a)")
        conn.commit()
        conn.close()

        code = main(['migrate', '--database', str(db_path), '--schema', str(schema_file), '--no-color'])

        assert code == 1
        assert "Refusing to delete tables legacy" in capsys.readouterr().err

    def test_allow_deletions(self, tmp_path, schema_file):
        db_path = tmp_path / "app.db"
        conn = sqlite3.connect(str(db_path))
        conn.execute("CREATE TABLE legacy(a)")
        conn.commit()
        conn.close()

        code = main([
            'migrate', '--database', str(db_path), '--schema', str(schema_file),
            '--allow-deletions', '--no-color',
        ])

        assert code == 0

    def test_invalid_schema(self, tmp_path, capsys):
        bad = tmp_path / "bad.sql"
        bad.write_text("CREATE TABLE (")

        code = main(['migrate', '--database', str(tmp_path / "app.db"), '--schema', str(bad), '--no-color'])

        assert code == 1
        assert "Error during migration" in capsys.readouterr().err

    def test_plan_is_dry_run(self, tmp_path, schema_file, capsys):
        db_path = tmp_path / "app.db"

        code = main(['plan', '--database', str(db_path), '--schema', str(schema_file), '--no-color'])

        assert code == 0
        assert "+ Create Table: users" in capsys.readouterr().out
        conn = sqlite3.connect(str(db_path))
        try:
            assert conn.execute("SELECT count(*) FROM sqlite_master").fetchone() == (0,)
        finally:
            conn.close()

    def test_missing_required_arguments(self):
        with pytest.raises(SystemExit) as excinfo:
            main(['migrate', '--schema', 'schema.sql'])
        assert excinfo.value.code == 2
