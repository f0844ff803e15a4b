"""Database connection module for edumarket."""

from edumarket.core.database.cassandra import (
    CassandraConnection,
    CassandraStore,
    init_cassandra,
    shutdown_cassandra,
)


__all__ = [
    "CassandraConnection",
    "CassandraStore",
    "init_cassandra",
    "shutdown_cassandra",
]
