"""Connectors for the supported order backends, keyed by SQLAlchemy dialect name."""

from app.core.backends.mssql import MSSQL
from app.core.backends.postgres import POSTGRES
from app.core.connectors import Connector
from app.core.errors import DatabaseConnectionError

CONNECTORS = {connector.dialect: connector for connector in (POSTGRES, MSSQL)}


def get_connector(dialect: str) -> Connector:
    try:
        return CONNECTORS[dialect]
    except KeyError:
        raise DatabaseConnectionError(
            f"unsupported database dialect '{dialect}'"
        ) from None
