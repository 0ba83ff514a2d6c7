"""Failures raised by the order store.

Every error carries the underlying driver/SQLAlchemy exception as its
``__cause__`` so callers can log it before turning it into a response.
"""


class OrderStoreError(Exception):
    """Base class for everything the order store raises."""


class DatabaseConnectionError(OrderStoreError):
    """A backend could not be reached or did not answer the ping."""


class SchemaError(OrderStoreError):
    """The orders table could not be created."""


class RepositoryError(OrderStoreError):
    """A query failed for any reason other than a duplicate key."""


class DuplicateKeyError(OrderStoreError):
    """An order with the same (order_id, namespace) already exists."""

    def __init__(self, order_id: str, namespace: str):
        super().__init__(
            f"order '{order_id}' already exists in namespace '{namespace}'"
        )
        self.order_id = order_id
        self.namespace = namespace
