from typing import List, Literal, Optional

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseModel):
    """One order backend: either a full URL or the parts to build one from."""

    dialect: Literal["postgresql", "mssql"] = "postgresql"
    url: Optional[SecretStr] = None
    host: str = "localhost"
    port: Optional[int] = None
    user: str = ""
    password: SecretStr = SecretStr("")
    name: str = "orders"
    # SQL Server only: accept a self-signed certificate (local containers)
    trust_server_certificate: bool = False


class Settings(BaseSettings):
    # e.g. PRIMARY_DB__URL=postgresql+psycopg2://user:pass@db/orders
    PRIMARY_DB: BackendSettings = BackendSettings()
    SECONDARY_DB: BackendSettings = BackendSettings()

    ORDERS_TABLE: str = "orders"

    # Requests whose ROUTING_HEADER equals ROUTING_SELECTOR go to PRIMARY_DB
    ROUTING_HEADER: str = "end-user"
    ROUTING_SELECTOR: str = ""
    ROUTING_MODE: Literal["fallback", "strict"] = "fallback"

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8017

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", env_nested_delimiter="__"
    )


# Create a single instance of the settings to use everywhere
settings = Settings()
