"""
Database module for PostgreSQL interactions.
Stores classified messages in one of two tables and reads them back.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any, Sequence, Union
from contextlib import contextmanager
from psycopg2 import sql
from psycopg2.extras import RealDictCursor
from psycopg2.pool import SimpleConnectionPool

from config import Config

logger = logging.getLogger(__name__)


class MessagePartition(str, Enum):
    """The two tables a classified message can be written to."""

    WITH_WORD = "messages_with_word"
    WITHOUT_WORD = "messages_without_word"


INSERT_MESSAGE_SQL = """
    INSERT INTO {table} (sender_id, message_text, sent_date, filter_word)
    VALUES (%s, %s, %s, %s)
"""

SELECT_MESSAGES_WITHOUT_WORD_SQL = """
    SELECT sender_id, message_text, sent_date
    FROM messages_without_word
    ORDER BY sent_date
"""

SELECT_MESSAGES_WITH_WORD_SQL = """
    SELECT sender_id, message_text, sent_date
    FROM messages_with_word
    WHERE filter_word = %s
    ORDER BY sent_date
"""


SELECT_ALL_MESSAGES_SQL = """
    SELECT sender_id, message_text, sent_date, filter_word
    FROM {table}
    ORDER BY sent_date
"""


def build_insert_query(partition: Union[MessagePartition, str]) -> sql.Composed:
    """
    Build the INSERT statement for a partition.

    Args:
        partition: MessagePartition member or its table name

    Returns:
        Composed query with the table name quoted as an identifier

    Raises:
        ValueError: If partition is not one of the known tables
    """
    table = MessagePartition(partition)
    return sql.SQL(INSERT_MESSAGE_SQL).format(table=sql.Identifier(table.value))


class Database:
    """Database manager for PostgreSQL operations."""

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        connect_timeout: int = 10,
        statement_timeout_ms: int = 5000,
        min_connections: int = 1,
        max_connections: int = 5
    ):
        """
        Initialize database connection pool.

        Args:
            host: PostgreSQL host
            port: PostgreSQL port
            database: Database name
            user: Database user
            password: Database password
            connect_timeout: Seconds to wait when opening a connection
            statement_timeout_ms: Server-side limit for a single statement
            min_connections: Minimum number of connections in pool
            max_connections: Maximum number of connections in pool

        Raises:
            psycopg2.OperationalError: If the database is unreachable
        """
        self.connection_pool = SimpleConnectionPool(
            min_connections,
            max_connections,
            host=host,
            port=port,
            database=database,
            user=user,
            password=password,
            connect_timeout=connect_timeout,
            options=f"-c statement_timeout={statement_timeout_ms}"
        )
        self.closed = False

    @contextmanager
    def get_connection(self):
        """
        Context manager for getting a database connection from the pool.

        Yields:
            psycopg2 connection
        """
        conn = self.connection_pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            raise e
        finally:
            self.connection_pool.putconn(conn)

    @contextmanager
    def get_cursor(self, cursor_factory=RealDictCursor):
        """
        Context manager for getting a cursor.

        Args:
            cursor_factory: Cursor factory class (default: RealDictCursor)

        Yields:
            Database cursor
        """
        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=cursor_factory)
            try:
                yield cursor
            finally:
                cursor.close()

    def close(self) -> bool:
        """
        Close all connections in the pool.

        Returns:
            True if the pool was closed by this call, False if it was already closed
        """
        if self.closed:
            logger.debug("Connection pool already closed")
            return False

        self.closed = True
        if self.connection_pool:
            self.connection_pool.closeall()
        logger.info("🔒 Database connection pool closed")
        return True

    # ========== WRITE OPERATIONS ==========

    def store_classified_message(
        self,
        sender_id: int,
        message_text: str,
        sent_date: datetime,
        filter_word: str,
        partition: Union[MessagePartition, str]
    ) -> None:
        """
        Insert one classified message into the table of its partition.

        Args:
            sender_id: Telegram ID of the message author
            message_text: Full message text
            sent_date: When the message was sent
            filter_word: Filter word active when the message was classified
            partition: Target table; must be a MessagePartition

        Raises:
            ValueError: If partition is not a known table
            psycopg2.Error: If the insert fails
        """
        query = build_insert_query(partition)
        with self.get_cursor() as cursor:
            cursor.execute(query, (sender_id, message_text, sent_date, filter_word))

    # ========== READ OPERATIONS ==========

    def run_query(
        self,
        query: Union[str, sql.Composable],
        params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a read query with bound parameters.

        Args:
            query: SQL text using %s placeholders
            params: Values bound to the placeholders

        Returns:
            List of row dictionaries
        """
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.fetchall()

    def get_messages_without_word(self) -> List[Dict[str, Any]]:
        """Get every message stored as not containing its filter word."""
        return self.run_query(SELECT_MESSAGES_WITHOUT_WORD_SQL)

    def get_messages_with_word(self, search_word: str) -> List[Dict[str, Any]]:
        """
        Get messages stored as containing the given filter word.

        Args:
            search_word: Filter word the messages were classified with

        Returns:
            List of row dictionaries (sender_id, message_text, sent_date)
        """
        return self.run_query(SELECT_MESSAGES_WITH_WORD_SQL, (search_word,))

    def get_all_messages(self, partition: Union[MessagePartition, str]) -> List[Dict[str, Any]]:
        """
        Get every row stored in a partition, oldest first.

        Args:
            partition: Table to read; must be a MessagePartition

        Returns:
            List of row dictionaries including filter_word
        """
        table = MessagePartition(partition)
        query = sql.SQL(SELECT_ALL_MESSAGES_SQL).format(table=sql.Identifier(table.value))
        return self.run_query(query)

    def count_messages(self, partition: Union[MessagePartition, str]) -> int:
        """Count rows stored in a partition."""
        table = MessagePartition(partition)
        query = sql.SQL("SELECT COUNT(*) AS count FROM {table}").format(
            table=sql.Identifier(table.value)
        )
        rows = self.run_query(query)
        return rows[0]['count']


def get_database_from_env() -> Database:
    """
    Create a Database instance from the loaded configuration.

    Settings come from Config, which reads DB_HOST, DB_PORT, DB_NAME,
    DB_USER, DB_PASSWORD, DB_CONNECT_TIMEOUT and DB_STATEMENT_TIMEOUT_MS
    from the environment.

    Returns:
        Database instance
    """
    return Database(
        host=Config.DB_HOST,
        port=Config.DB_PORT,
        database=Config.DB_NAME,
        user=Config.DB_USER,
        password=Config.DB_PASSWORD,
        connect_timeout=Config.DB_CONNECT_TIMEOUT,
        statement_timeout_ms=Config.DB_STATEMENT_TIMEOUT_MS,
    )
