from typing import Any, Callable, Optional

from pydantic import TypeAdapter
from sqlalchemy.engine import Dialect
from sqlalchemy.types import Text, TypeDecorator


class JSONDocument(TypeDecorator):
    """Stores a pydantic-typed sub-document as a JSON text blob.

    The database only ever sees opaque text; rows come back as the
    structured Python type described by *schema* (e.g.
    ``List[ScoreHistoryEntry]``).  Empty or NULL columns load as
    ``default()``.
    """

    impl = Text
    cache_ok = True

    def __init__(self, schema: Any, default: Optional[Callable[[], Any]] = None):
        super().__init__()
        self._schema = schema
        self._adapter = TypeAdapter(schema)
        self._default = default

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        return self._adapter.dump_json(self._adapter.validate_python(value)).decode()

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        if value is None or not str(value).strip():
            return self._default() if self._default else None
        return self._adapter.validate_json(value)

    def copy(self, **kw):
        return JSONDocument(self._schema, self._default)
