import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import Numeric, String, bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.connectors import Connector
from app.core.errors import DuplicateKeyError, RepositoryError
from app.core.sanitize import sanitize_identifier
from app.core.schemas import Order

logger = logging.getLogger(__name__)

INSERT_QUERY = (
    "INSERT INTO {table} (order_id, namespace, total) "
    "VALUES (:order_id, :namespace, :total)"
)
SELECT_QUERY = "SELECT order_id, namespace, total FROM {table}"
SELECT_NAMESPACE_QUERY = SELECT_QUERY + " WHERE namespace = :namespace"
DELETE_QUERY = "DELETE FROM {table}"
DELETE_NAMESPACE_QUERY = DELETE_QUERY + " WHERE namespace = :namespace"
DROP_QUERY = "DROP TABLE {table}"

TOTAL_TYPE = Numeric(8, 2)


class OrderRepository:
    """Orders stored in a single table of one backend.

    The table name is sanitized again for every statement: it is the only
    part of the SQL that is interpolated instead of bound.
    """

    def __init__(self, engine: Engine, table_name: str, connector: Connector):
        self._engine = engine
        self._table_name = table_name
        self._connector = connector

    @property
    def dialect(self) -> str:
        return self._connector.dialect

    @property
    def table_name(self) -> str:
        return sanitize_identifier(self._table_name)

    def _sql(self, template: str) -> str:
        return template.format(table=sanitize_identifier(self._table_name))

    def insert(self, order: Order) -> None:
        sql = self._sql(INSERT_QUERY)
        query = text(sql).bindparams(bindparam("total", type_=TOTAL_TYPE))
        logger.debug("Running insert order query: %r", sql)
        params = {
            "order_id": order.order_id,
            "namespace": order.namespace,
            "total": order.total,
        }
        try:
            with self._engine.begin() as connection:
                connection.execute(query, params)
        except IntegrityError as error:
            if self._connector.is_duplicate_key(error.orig):
                raise DuplicateKeyError(order.order_id, order.namespace) from error
            raise RepositoryError("while inserting order") from error
        except SQLAlchemyError as error:
            raise RepositoryError("while inserting order") from error

    def list_all(self) -> List[Order]:
        return self._select(SELECT_QUERY, {}, "while reading orders from DB")

    def list_by_namespace(self, namespace: str) -> List[Order]:
        return self._select(
            SELECT_NAMESPACE_QUERY,
            {"namespace": namespace},
            f"while reading orders for namespace '{namespace}' from DB",
        )

    def delete_all(self) -> None:
        self._execute(DELETE_QUERY, {}, "while deleting orders")

    def delete_by_namespace(self, namespace: str) -> None:
        self._execute(
            DELETE_NAMESPACE_QUERY,
            {"namespace": namespace},
            f"while deleting orders in namespace '{namespace}'",
        )

    def close(self) -> None:
        logger.debug("Closing connection to %s", self.dialect)
        self._engine.dispose()

    def teardown(self) -> None:
        """Drop the table and close the connection.

        The connection is closed even when the drop fails. A drop failure is
        raised afterwards and names any close failure in its message.
        """
        drop_error: Optional[SQLAlchemyError] = None
        sql = self._sql(DROP_QUERY)
        logger.debug("Removing DB table: %r", sql)
        try:
            with self._engine.begin() as connection:
                connection.execute(text(sql))
        except SQLAlchemyError as error:
            drop_error = error

        try:
            self._engine.dispose()
        except SQLAlchemyError as error:
            if drop_error is None:
                raise RepositoryError("while closing connection to the DB") from error
            raise RepositoryError(
                "while removing the DB table; "
                f"closing connection to the DB also failed: {error}"
            ) from drop_error

        if drop_error is not None:
            raise RepositoryError("while removing the DB table") from drop_error

    def _select(
        self, template: str, params: Dict[str, Any], context: str
    ) -> List[Order]:
        sql = self._sql(template)
        query = text(sql).columns(order_id=String, namespace=String, total=TOTAL_TYPE)
        logger.debug("Querying orders: %r", sql)
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(query, params).mappings().all()
        except SQLAlchemyError as error:
            raise RepositoryError(context) from error

        try:
            return [Order.model_validate(dict(row)) for row in rows]
        except ValidationError as error:
            raise RepositoryError(f"{context}: unreadable row") from error

    def _execute(self, template: str, params: Dict[str, Any], context: str) -> None:
        sql = self._sql(template)
        logger.debug("Running query: %r", sql)
        try:
            with self._engine.begin() as connection:
                connection.execute(text(sql), params)
        except SQLAlchemyError as error:
            raise RepositoryError(context) from error
