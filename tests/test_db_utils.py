from unittest.mock import MagicMock, Mock, patch

import psycopg2

import db_utils
from database import MessagePartition


def make_db():
    db = Mock()
    db.get_cursor.return_value = MagicMock()
    return db


class TestInitDatabase:
    def test_runs_schema(self):
        db = make_db()
        with patch("db_utils.get_database_from_env", return_value=db):
            assert db_utils.init_database() is True

        cursor = db.get_cursor.return_value.__enter__.return_value
        schema = cursor.execute.call_args.args[0]
        for partition in MessagePartition:
            assert f"CREATE TABLE IF NOT EXISTS {partition.value}" in schema
        db.close.assert_called_once()


class TestTestConnection:
    def test_prints_counts(self, capsys):
        db = make_db()
        db.count_messages.return_value = 2
        with patch("db_utils.get_database_from_env", return_value=db):
            assert db_utils.test_connection() is True

        out = capsys.readouterr().out
        assert "messages_with_word (2 rows)" in out
        assert "messages_without_word (2 rows)" in out
        db.close.assert_called_once()

    def test_unreachable_database(self):
        error = psycopg2.OperationalError("could not connect")
        with patch("db_utils.get_database_from_env", side_effect=error):
            assert db_utils.test_connection() is False


class TestDisplayAllMessages:
    def test_query_failure_still_closes(self):
        db = make_db()
        db.get_all_messages.side_effect = psycopg2.OperationalError("timeout")
        with patch("db_utils.get_database_from_env", return_value=db):
            assert db_utils.display_all_messages() is False

        db.close.assert_called_once()

    def test_reads_each_partition(self, capsys):
        db = make_db()
        db.get_all_messages.return_value = [
            {"sender_id": 7, "message_text": "a cat", "sent_date": "2024-05-01 12:30:00", "filter_word": "cat"},
        ]
        with patch("db_utils.get_database_from_env", return_value=db):
            assert db_utils.display_all_messages() is True

        assert [c.args[0] for c in db.get_all_messages.call_args_list] == list(MessagePartition)
        assert "Message: a cat" in capsys.readouterr().out
        db.run_query.assert_not_called()
