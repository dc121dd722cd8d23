from abc import ABC, abstractmethod
from typing import Any, Iterator

from sqlalchemy.dialects import sqlite

_preparer = sqlite.dialect().identifier_preparer


def quote_ident(ident: str) -> str:
    """Quotes an identifier for SQLite only where it needs quoting."""
    return _preparer.quote(ident)


class BaseGenerator(ABC):
    @abstractmethod
    def generate(self, *args: Any, **kwargs: Any) -> Iterator[Any]:
        """Yields the operations of a migration plan, in execution order."""
        pass

    def quote_ident(self, ident: str) -> str:
        return quote_ident(ident)
