import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from app.core.errors import DatabaseConnectionError, SchemaError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    host: str
    database: str
    user: str = ""
    password: str = ""
    port: Optional[int] = None
    # Extra URL query parameters, on top of the connector defaults
    options: Dict[str, str] = field(default_factory=dict)


def redact_url(url: URL) -> str:
    """Render a connection URL with the user/password segment masked."""
    # URL.set() ignores None, so rebuild the URL without the credentials
    rendered = URL.create(
        url.drivername,
        host=url.host,
        port=url.port,
        database=url.database,
        query=url.query,
    ).render_as_string(hide_password=False)
    if url.username is None and url.password is None:
        return rendered
    scheme, _, rest = rendered.partition("://")
    return f"{scheme}://***:***@{rest}"


@dataclass(frozen=True)
class Connector:
    """Opens and bootstraps one kind of relational backend.

    The supported backends only differ in the values held here, so each one
    is a module-level instance rather than a subclass.
    """

    dialect: str
    driver: str
    default_port: int
    # DDL with a ``{name}`` placeholder for the (already sanitized) table name
    table_ddl: str
    # Receives the DBAPI exception behind an IntegrityError
    is_duplicate_key: Callable[[BaseException], bool]
    query: Dict[str, str] = field(default_factory=dict)

    @property
    def drivername(self) -> str:
        return f"{self.dialect}+{self.driver}"

    def build_connection_string(self, credentials: Credentials) -> str:
        url = URL.create(
            self.drivername,
            username=credentials.user or None,
            password=credentials.password or None,
            host=credentials.host,
            port=credentials.port or self.default_port,
            database=credentials.database,
            query={**self.query, **credentials.options},
        )
        logger.debug("Built %s connection string: %s", self.dialect, redact_url(url))
        return url.render_as_string(hide_password=False)

    def open(self, connection_string: str, **engine_kwargs: Any) -> Engine:
        """Create an engine for ``connection_string`` and make sure it answers."""
        try:
            url = make_url(connection_string)
        except ArgumentError as error:
            raise DatabaseConnectionError(
                f"invalid connection string for '{self.dialect}'"
            ) from error

        if url.get_backend_name() != self.dialect:
            raise DatabaseConnectionError(
                f"connection string targets '{url.get_backend_name()}', "
                f"expected '{self.dialect}'"
            )

        logger.info("Establishing connection with %s", redact_url(url))
        try:
            engine = create_engine(url, pool_pre_ping=True, **engine_kwargs)
        except (ArgumentError, ImportError) as error:
            raise DatabaseConnectionError(
                f"while establishing connection to '{self.dialect}'"
            ) from error

        logger.debug("Testing connection")
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as error:
            engine.dispose()
            raise DatabaseConnectionError(
                f"while testing connection to '{self.dialect}'"
            ) from error
        return engine

    def ensure_table(self, engine: Engine, name: str) -> None:
        # name must already be sanitized, nothing is stripped here
        query = self.table_ddl.replace("{name}", name)
        logger.debug("Ensuring table exists. Running query: %r", query)
        try:
            with engine.begin() as connection:
                connection.execute(text(query))
        except SQLAlchemyError as error:
            raise SchemaError(f"while initiating table '{name}'") from error
