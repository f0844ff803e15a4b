"""Cassandra database connection and management.

Provides:
- Connection management
- Keyspace and table initialization
- CassandraStore, the base class for store adapters
"""

from typing import TYPE_CHECKING, Any

import structlog

from edumarket.auth.models import AUTH_TABLES_CQL
from edumarket.config.settings import get_settings
from edumarket.core.errors import StoreError
from edumarket.courses.models import COURSES_TABLES_CQL
from edumarket.purchases.models import PURCHASES_TABLES_CQL


if TYPE_CHECKING:
    from cassandra.cluster import Cluster, Session


logger = structlog.get_logger(__name__)


class CassandraConnection:
    """Cassandra connection manager.

    Manages cluster connection and session lifecycle.
    """

    _cluster: "Cluster | None" = None
    _session: "Session | None" = None

    @classmethod
    def connect(cls) -> "Session":
        """Establish connection to Cassandra cluster.

        Returns:
            Active Cassandra session

        Raises:
            ConnectionError: If connection fails
        """
        if cls._session is not None:
            return cls._session

        # Driver is loaded on first connect so the app imports without it
        from cassandra.auth import PlainTextAuthProvider
        from cassandra.cluster import Cluster
        from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
            cls._session.default_timeout = settings.cassandra_request_timeout
            logger.info(
                "cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
            )
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return cls._session

    @classmethod
    def get_session(cls) -> "Session":
        """Get active session, connecting if necessary."""
        if cls._session is None:
            return cls.connect()
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close connection to Cassandra."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
            logger.info("cassandra_session_closed")

        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_cluster_closed")

    @classmethod
    def is_connected(cls) -> bool:
        """Check if connection is active."""
        return cls._session is not None and not cls._session.is_shutdown


def init_keyspace(session: "Session", keyspace: str) -> None:
    """Create keyspace if not exists."""
    settings = get_settings()

    if settings.is_production:
        replication = """
            'class': 'NetworkTopologyStrategy',
            'datacenter1': 3
        """
    else:
        replication = """
            'class': 'SimpleStrategy',
            'replication_factor': 1
        """

    cql = f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
    """

    session.execute(cql)
    logger.info("keyspace_created", keyspace=keyspace)


def init_tables(session: "Session", keyspace: str) -> None:
    """Create auth, course and purchase tables."""
    for group, statements in (
        ("auth", AUTH_TABLES_CQL),
        ("courses", COURSES_TABLES_CQL),
        ("purchases", PURCHASES_TABLES_CQL),
    ):
        for cql_template in statements:
            session.execute(cql_template.format(keyspace=keyspace))
        logger.info("tables_created", group=group, keyspace=keyspace)


def init_cassandra() -> "Session":
    """Initialize Cassandra connection and schema.

    Creates keyspace and tables if they don't exist.
    """
    settings = get_settings()

    session = CassandraConnection.connect()
    init_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    init_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


def shutdown_cassandra() -> None:
    """Shutdown Cassandra connection."""
    CassandraConnection.disconnect()


class CassandraStore:
    """Base class for Cassandra-backed store adapters.

    Subclasses prepare their statements in ``_prepare_statements`` and run
    every query through ``_execute``, which is the single place where driver
    exceptions are turned into StoreError.
    """

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        raise NotImplementedError

    def _execute(self, statement: Any, parameters: list[Any] | None = None) -> Any:
        try:
            return self.session.execute(statement, parameters)
        except Exception as e:
            logger.error(
                "store_operation_failed",
                store=type(self).__name__,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise StoreError from e
