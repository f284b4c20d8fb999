"""
End-to-end smart-commit behavior on SQLite connections opened with `connect`.
"""
import pytest
import smartcommit as sc

from tests.fixtures.sqlite import count_rows, in_driver_transaction


class TestConnect:

    def test_defaults(self, sqlite_conn):
        assert isinstance(sqlite_conn, sc.SmartCommitConnection)
        assert sqlite_conn.dialect == 'sqlite'
        assert sqlite_conn.autocommit is True
        assert sqlite_conn.smart_commit is True
        assert sqlite_conn.driver_autocommit is True

    def test_autocommit_off_keeps_driver_autocommit(self, reopen):
        cn = reopen(autocommit=False)
        assert cn.autocommit is False
        assert cn.smart_commit is True
        assert cn.driver_autocommit is True

    def test_smart_commit_off_starts_in_transaction_mode(self, reopen):
        cn = reopen(autocommit=False, smart_commit=False)
        assert cn.driver_autocommit is False

    def test_context_manager_closes(self, reopen):
        with reopen() as cn:
            assert count_rows(cn) == 3
        assert cn.closed


class TestSmartCommit:

    def test_query_does_not_open_transaction(self, sqlite_file_conn):
        sqlite_file_conn.autocommit = False
        assert count_rows(sqlite_file_conn) == 3
        assert sqlite_file_conn.driver_autocommit is True
        assert not in_driver_transaction(sqlite_file_conn)

    def test_rollback_discards_insert(self, sqlite_file_conn):
        cn = sqlite_file_conn
        cn.autocommit = False
        with cn.cursor() as cursor:
            cursor.execute("INSERT INTO test_table (name, value) VALUES ('Dana', 40)")
        assert cn.driver_autocommit is False
        assert in_driver_transaction(cn)

        cn.rollback()

        assert cn.driver_autocommit is True
        assert count_rows(cn) == 3

    def test_commit_persists_across_connections(self, sqlite_file_conn, reopen):
        cn = sqlite_file_conn
        cn.autocommit = False
        with cn.cursor() as cursor:
            cursor.execute('UPDATE test_table SET value = ? WHERE name = ?', (99, 'Alice'))

        other = reopen()
        with other.cursor() as cursor:
            cursor.execute("SELECT value FROM test_table WHERE name = 'Alice'")
            assert cursor.fetchone()[0] == 10
        other.close()

        cn.commit()

        with reopen().cursor() as cursor:
            cursor.execute("SELECT value FROM test_table WHERE name = 'Alice'")
            assert cursor.fetchone()[0] == 99

    def test_autocommit_writes_persist(self, sqlite_file_conn, reopen):
        with sqlite_file_conn.cursor() as cursor:
            cursor.execute("DELETE FROM test_table WHERE name = 'Bob'")
        assert count_rows(reopen()) == 2

    def test_executemany_in_transaction(self, sqlite_file_conn):
        cn = sqlite_file_conn
        cn.autocommit = False
        with cn.cursor() as cursor:
            cursor.executemany('INSERT INTO test_table (name, value) VALUES (?, ?)',
                               [('Dana', 40), ('Eve', 50)])
        assert count_rows(cn) == 5
        cn.rollback()
        assert count_rows(cn) == 3

    def test_commit_illegal_in_autocommit(self, sqlite_conn):
        with pytest.raises(sc.IllegalStateError):
            sqlite_conn.commit()

    def test_integrity_error_propagates(self, sqlite_conn):
        sqlite_conn.autocommit = False
        with pytest.raises(sc.IntegrityError):
            sqlite_conn.cursor().execute("INSERT INTO test_table (name, value) VALUES ('Alice', 1)")
        sqlite_conn.rollback()
        assert sqlite_conn.driver_autocommit is True
        assert count_rows(sqlite_conn) == 3

    def test_toggle_autocommit_commits_open_transaction(self, sqlite_file_conn, reopen):
        """Turning auto-commit back on commits what the transaction holds."""
        cn = sqlite_file_conn
        cn.autocommit = False
        cn.cursor().execute("INSERT INTO test_table (name, value) VALUES ('Dana', 40)")
        cn.autocommit = True
        assert count_rows(reopen()) == 4


class TestSavepoints:

    def test_rollback_to_savepoint(self, sqlite_file_conn, reopen):
        cn = sqlite_file_conn
        cn.autocommit = False
        cursor = cn.cursor()
        cursor.execute("INSERT INTO test_table (name, value) VALUES ('Dana', 40)")
        sp = cn.savepoint('after_dana')
        cursor.execute("INSERT INTO test_table (name, value) VALUES ('Eve', 50)")
        assert count_rows(cn) == 5

        cn.rollback(sp)
        assert count_rows(cn) == 4

        cn.release_savepoint(sp)
        cn.commit()

        with reopen().cursor() as check:
            check.execute('SELECT name FROM test_table ORDER BY id')
            assert [row[0] for row in check.fetchall()] == ['Alice', 'Bob', 'Charlie', 'Dana']

    def test_savepoint_starts_transaction(self, sqlite_conn):
        sqlite_conn.autocommit = False
        sp = sqlite_conn.savepoint()
        assert sp.name == 'sp_1'
        assert sqlite_conn.driver_autocommit is False
        sqlite_conn.cursor().execute("DELETE FROM test_table WHERE name = 'Alice'")
        sqlite_conn.rollback()
        assert count_rows(sqlite_conn) == 3


class TestConnectionShortcuts:

    def test_execute_on_connection_can_be_rolled_back(self, sqlite_file_conn, reopen):
        cn = sqlite_file_conn
        cn.autocommit = False
        cn.execute("INSERT INTO test_table (name, value) VALUES ('Dana', 40)")
        assert in_driver_transaction(cn)

        cn.rollback()

        assert count_rows(cn) == 3
        assert count_rows(reopen()) == 3

    def test_execute_returns_cursor(self, sqlite_conn):
        cursor = sqlite_conn.execute('SELECT name FROM test_table WHERE value = ?', (20,))
        assert cursor.fetchone() == ('Bob',)

    def test_executescript_in_autocommit(self, sqlite_conn):
        sqlite_conn.executescript("""
        CREATE TABLE other (a INTEGER);
        INSERT INTO other VALUES (1);
        """)
        assert count_rows(sqlite_conn, 'other') == 1

    def test_executescript_rejected_in_transaction_mode(self, sqlite_conn):
        sqlite_conn.autocommit = False
        with pytest.raises(sc.IllegalStateError):
            sqlite_conn.executescript("DELETE FROM test_table;")
        assert count_rows(sqlite_conn) == 3
