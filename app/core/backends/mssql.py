import re

from app.core.connectors import Connector

MSSQL_TABLE_DDL = """IF NOT EXISTS (SELECT * FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_NAME = '{name}')
BEGIN
    CREATE TABLE {name} (
      order_id VARCHAR(64),
      namespace VARCHAR(64),
      total DECIMAL(8,2),
      PRIMARY KEY (order_id, namespace)
    )
END"""

# 2627: PRIMARY KEY / UNIQUE constraint, 2601: unique index
DUPLICATE_KEY_ERRORS = (2627, 2601)

# pyodbc puts the native error number in the message, e.g. "... (2627) (SQLExecDirectW)"
_NATIVE_ERROR = re.compile(r"\((\d+)\)")


def is_key_violation(error: BaseException) -> bool:
    for arg in getattr(error, "args", ()):
        if isinstance(arg, int) and arg in DUPLICATE_KEY_ERRORS:
            return True
        if isinstance(arg, str):
            codes = {int(code) for code in _NATIVE_ERROR.findall(arg)}
            if codes.intersection(DUPLICATE_KEY_ERRORS):
                return True
    return False


MSSQL = Connector(
    dialect="mssql",
    driver="pyodbc",
    default_port=1433,
    table_ddl=MSSQL_TABLE_DDL,
    is_duplicate_key=is_key_violation,
    query={"driver": "ODBC Driver 18 for SQL Server"},
)
