import logging
from enum import Enum
from typing import Optional

from app.core.repository import OrderRepository

logger = logging.getLogger(__name__)


class Backend(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class RoutingMode(str, Enum):
    # Mismatching selectors are served by the secondary backend
    FALLBACK = "fallback"
    # Mismatching selectors are rejected
    STRICT = "strict"


class BackendRouter:
    """Picks the primary or secondary repository from a request's selector value.

    Both repositories are opened once at startup and shared by every request.
    """

    def __init__(
        self,
        primary: OrderRepository,
        secondary: OrderRepository,
        selector: str,
        mode: RoutingMode = RoutingMode.FALLBACK,
        header: str = "end-user",
    ):
        if not selector:
            logger.warning(
                "Routing selector is empty, every request goes to the secondary backend"
            )
        self._repositories = {Backend.PRIMARY: primary, Backend.SECONDARY: secondary}
        self._selector = selector
        self.mode = mode
        # Request header carrying the selector value
        self.header = header

    def resolve(self, value: Optional[str]) -> Backend:
        if value and value == self._selector:
            return Backend.PRIMARY
        return Backend.SECONDARY

    def select(self, value: Optional[str]) -> OrderRepository:
        return self._repositories[self.resolve(value)]

    def accepts(self, value: Optional[str]) -> bool:
        if self.mode is RoutingMode.STRICT:
            return self.resolve(value) is Backend.PRIMARY
        return True

    def close(self) -> None:
        for repository in self._repositories.values():
            repository.close()
