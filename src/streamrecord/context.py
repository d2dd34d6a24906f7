"""Request-scoped record context carried in contextvars.

Identifying fields (trace_id, span_id, ...) and free-form request data
are bound once per request and picked up by every record built while
the binding is active, including records produced by the log handler.
Nested bindings merge over the outer one; inner values win.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from streamrecord.errors import TypeMismatchError
from streamrecord.models.streams import CONTEXT_FIELD_NAMES, FieldType

_bound_context: ContextVar[Optional[Mapping[str, str]]] = ContextVar(
    "streamrecord_context", default=None
)
_bound_data: ContextVar[Optional[Mapping[str, Any]]] = ContextVar(
    "streamrecord_data", default=None
)

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def current_context() -> Mapping[str, str]:
    """Context fields bound for the running task or thread."""
    return _bound_context.get() or _EMPTY


def current_data() -> Mapping[str, Any]:
    """Request data bound for the running task or thread."""
    return _bound_data.get() or _EMPTY


@contextmanager
def bind_context(**fields: Any) -> Iterator[Mapping[str, str]]:
    """Bind record context for the duration of the block.

    Keys naming a context field (trace_id, span_id, instance_id, org_id,
    user_id) must be strings and become record context. Any other key is
    request data and lands in the attribute bag of log-derived records.
    None values are skipped.

        with bind_context(trace_id=span.trace_id, org_id=org):
            handle(request)
    """
    context = dict(current_context())
    data = dict(current_data())
    for key, value in fields.items():
        if value is None:
            continue
        if key in CONTEXT_FIELD_NAMES:
            if not isinstance(value, str):
                raise TypeMismatchError(key, FieldType.STRING, value)
            context[key] = value
        else:
            data[key] = value

    context_token = _bound_context.set(MappingProxyType(context))
    data_token = _bound_data.set(MappingProxyType(data))
    try:
        yield current_context()
    finally:
        _bound_data.reset(data_token)
        _bound_context.reset(context_token)
