"""
Request context and context field enrichment.

A RequestContext carries request scoped string values (request ids, user
ids, ...) through a call chain. A ContextEnricher turns the configured field
names into the fields attached to each log record.

Usage:
    ctx = RequestContext().with_value("request_id", "abc123")
    enricher = ContextEnricher(["request_id", "user_id"])
    enricher.enrich(ctx)  # {"request_id": "abc123", "user_id": ""}
"""

from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar

from beartype.typing import Any, Callable, Dict, Iterable, Iterator, Optional

from assetlog.constants import FAULT_MAPPING

FieldAccessor = Callable[[Any], Optional[str]]


class RequestContext(Mapping):
    """
    Immutable mapping of context keys to string values.

    ``with_value`` and ``with_values`` return new contexts, the receiver is
    never changed. Values must be strings; format anything else before adding it.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Dict[str, str]] = None):
        values = dict(values or {})
        for key, value in values.items():
            _check_value(key, value)
        self._values = values

    def with_value(self, key: str, value: str) -> "RequestContext":
        _check_value(key, value)
        return RequestContext({**self._values, key: value})

    def with_values(self, **values: str) -> "RequestContext":
        return RequestContext({**self._values, **values})

    def value(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"RequestContext({self._values!r})"


def _check_value(key: str, value: Any):
    if not isinstance(value, str):
        raise TypeError(FAULT_MAPPING["invalid_context_value"].format(key=key, type_name=type(value).__name__))


_current_context: ContextVar[Optional[RequestContext]] = ContextVar("assetlog_request_context", default=None)


def current_context() -> Optional[RequestContext]:
    """Return the context bound with bind_context, or None"""
    return _current_context.get()


@contextmanager
def bind_context(ctx: RequestContext):
    """
    Bind ctx as the ambient request context for the duration of the block.

    Works per thread and per asyncio task, the previous context is restored
    on exit.

    Example:
        with bind_context(RequestContext({"request_id": "abc123"})):
            logger.info(None, "handled")
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def context_accessor(name: str) -> FieldAccessor:
    """
    Default accessor for a field: reads ``name`` from a RequestContext or any
    other mapping, or the attribute ``name`` from any other object.
    """

    def accessor(ctx: Any) -> Optional[str]:
        if isinstance(ctx, Mapping):
            return ctx.get(name)
        return getattr(ctx, name, None)

    return accessor


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


class ContextEnricher:
    """
    Builds the field map attached to a record from a context.

    Every configured name is read through its accessor. Names without a
    registered accessor use context_accessor(name).
    """

    def __init__(self, field_names: Iterable[str], accessors: Optional[Dict[str, FieldAccessor]] = None):
        self.field_names = list(field_names)
        self._accessors: Dict[str, FieldAccessor] = {name: context_accessor(name) for name in self.field_names}
        for name, accessor in (accessors or {}).items():
            if name not in self._accessors:
                self.field_names.append(name)
            self._accessors[name] = accessor

    @property
    def accessors(self) -> Dict[str, FieldAccessor]:
        return dict(self._accessors)

    def with_accessor(self, name: str, accessor: FieldAccessor) -> "ContextEnricher":
        """Return a new enricher with accessor registered for name"""
        return ContextEnricher(self.field_names, {**self._accessors, name: accessor})

    def enrich(self, ctx: Any) -> Dict[str, str]:
        """
        Read the configured fields from ctx.

        Args:
            ctx: RequestContext, mapping, object or None

        Returns:
            A new dict with every configured name. Missing values and
            accessors that fail give "". An empty dict when ctx is None.
        """
        if ctx is None:
            return {}
        fields = {}
        for name in self.field_names:
            try:
                value = self._accessors[name](ctx)
            except Exception:
                value = None
            fields[name] = _as_text(value)
        return fields
