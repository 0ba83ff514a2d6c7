import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from app.core.backends import get_connector
from app.core.config import BackendSettings, Settings
from app.core.connectors import Credentials
from app.core.errors import OrderStoreError, SchemaError
from app.core.repository import OrderRepository
from app.core.routing import BackendRouter, RoutingMode
from app.core.sanitize import sanitize_identifier

logger = logging.getLogger(__name__)


def connection_string_for(backend: BackendSettings) -> str:
    if backend.url is not None:
        return backend.url.get_secret_value()
    options = {}
    if backend.dialect == "mssql" and backend.trust_server_certificate:
        options["TrustServerCertificate"] = "yes"
    connector = get_connector(backend.dialect)
    return connector.build_connection_string(
        Credentials(
            host=backend.host,
            port=backend.port,
            user=backend.user,
            password=backend.password.get_secret_value(),
            database=backend.name,
            options=options,
        )
    )


def open_repository(backend: BackendSettings, table_name: str) -> OrderRepository:
    """Connect, ping and ensure the orders table for one backend."""
    table = sanitize_identifier(table_name)
    if not table:
        raise SchemaError(f"table name {table_name!r} is empty once sanitized")

    connector = get_connector(backend.dialect)
    engine = connector.open(connection_string_for(backend))
    try:
        connector.ensure_table(engine, table)
    except SchemaError:
        engine.dispose()
        raise
    return OrderRepository(engine, table_name, connector)


def create_backend_router(config: Settings) -> BackendRouter:
    # Backends are opened one after the other, primary first
    primary = open_repository(config.PRIMARY_DB, config.ORDERS_TABLE)
    try:
        secondary = open_repository(config.SECONDARY_DB, config.ORDERS_TABLE)
    except OrderStoreError:
        primary.close()
        raise
    logger.info(
        f"Order backends ready: primary={primary.dialect}, secondary={secondary.dialect}"
    )
    return BackendRouter(
        primary,
        secondary,
        config.ROUTING_SELECTOR,
        RoutingMode(config.ROUTING_MODE),
        header=config.ROUTING_HEADER,
    )


# The router is built once in the app lifespan and shared by every request
def get_backend_router(request: Request) -> BackendRouter:
    return request.app.state.backend_router


def get_order_repository(
    request: Request,
    backend_router: Annotated[BackendRouter, Depends(get_backend_router)],
) -> OrderRepository:
    selector = request.headers.get(backend_router.header, "")
    if not backend_router.accepts(selector):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Header '{backend_router.header}' does not match the configured selector",
        )
    return backend_router.select(selector)
