from psycopg2 import errorcodes

from app.core.connectors import Connector

POSTGRES_TABLE_DDL = """
    CREATE TABLE IF NOT EXISTS {name} (
      order_id VARCHAR(64),
      namespace VARCHAR(64),
      total DECIMAL(8,2),
      PRIMARY KEY (order_id, namespace)
    )
"""


def is_unique_violation(error: BaseException) -> bool:
    return getattr(error, "pgcode", None) == errorcodes.UNIQUE_VIOLATION


POSTGRES = Connector(
    dialect="postgresql",
    driver="psycopg2",
    default_port=5432,
    table_ddl=POSTGRES_TABLE_DDL,
    is_duplicate_key=is_unique_violation,
)
