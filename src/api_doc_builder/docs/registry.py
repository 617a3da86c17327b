"""In-memory registry of documented API calls.

Route handlers document themselves with :func:`document`. Outside of
documentation mode it does nothing and returns False; inside it builds
the APICall, registers it and returns True so the handler can return
early::

    def list_users(request):
        if document(lambda: APICall().set_group("Users").set_name("List")):
            return None
        ...
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Iterator

from pydantic import BaseModel

from api_doc_builder.docs.api_call import APICall
from api_doc_builder.docs.param import Param
from api_doc_builder.errors import DefinitionConflictError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = "default_headers"


class Interception(BaseModel):
    """The route currently being documented and what it registered."""

    method: str
    uri: str
    action: str = ""
    call: APICall | None = None

    @property
    def registered(self) -> bool:
        return self.call is not None


_active: ContextVar[tuple["DocRegistry", Interception] | None] = ContextVar(
    "api_doc_interception", default=None
)


class DocRegistry:
    """Holds every APICall registered during a documentation run."""

    def __init__(self):
        self._calls: list[APICall] = []
        self._definitions: dict[str, APICall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def register(self, call: APICall, override: bool = False) -> APICall:
        """Freeze and store a call. Definition names must be unique unless `override`."""
        define = call.get_define()
        previous = None
        if define is not None:
            previous = self._definitions.get(define.title)
            if previous is not None and not override:
                raise DefinitionConflictError(define.title)
        elif call.is_add_default_headers() and DEFAULT_HEADERS not in call.get_use():
            call.set_use(DEFAULT_HEADERS)

        call.freeze()

        if previous is not None:
            self._calls = [call if c is previous else c for c in self._calls]
        else:
            self._calls.append(call)

        if define is not None:
            self._definitions[define.title] = call

        logger.debug("Registered %s %s", call.get_method(), call.get_route())
        return call

    def find_by_definition(self, name: str) -> APICall | None:
        return self._definitions.get(name)

    def all_calls(self) -> list[APICall]:
        return list(self._calls)

    get_api_calls = all_calls

    def seed_default_headers(self) -> APICall:
        """Register the header block every call includes through `use`."""
        return self.register(
            APICall()
            .set_define(DEFAULT_HEADERS)
            .set_headers([
                Param("Accept", "String", "Set to `application/json`").set_default_value("application/json"),
                Param("x-api-key", "String", "API Key"),
                Param("x-access-token", "String", "Unique user authentication token"),
            ])
        )

    @contextmanager
    def intercept(self, method: str, uri: str, action: str = "") -> Iterator[Interception]:
        """Enable documentation mode for one route invocation."""
        interception = Interception(method=method, uri=uri, action=action)
        token = _active.set((self, interception))
        try:
            yield interception
        finally:
            _active.reset(token)

    def _document(self, interception: Interception, call: APICall) -> None:
        if not call.get_method():
            call.set_method(interception.method)
        if not call.get_route():
            call.set_route(interception.uri)
        interception.call = self.register(call)


def documentation_mode() -> bool:
    return _active.get() is not None


def document(factory: Callable[[], APICall]) -> bool:
    """Register the APICall built by `factory` when documentation mode is on."""
    active = _active.get()
    if active is None:
        return False

    registry, interception = active
    registry._document(interception, factory())
    return True
