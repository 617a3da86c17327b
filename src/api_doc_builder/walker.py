"""Route walker: calls every API route in documentation mode.

Each route is sent one synthetic request through the application. A
documented handler registers its APICall and returns early; a handler
that runs to completion without registering anything is undocumented.
"""

import enum
import logging
from typing import Any, Protocol

import requests
from pydantic import BaseModel, ConfigDict

from api_doc_builder.config import DocsConfig
from api_doc_builder.docs.api_call import APICall
from api_doc_builder.docs.registry import DocRegistry
from api_doc_builder.errors import (
    APICallsNotDefinedError,
    BadMethodCallError,
    MethodNotAllowedError,
    RequestValidationError,
    UndocumentedAPIError,
)

logger = logging.getLogger(__name__)


class Route(BaseModel):
    """A route as registered with the web application."""

    uri: str  # api/v1/users/{id}
    methods: list[str]
    name: str | None = None
    action: str = "Closure"
    domain: str | None = None
    middleware: list[str] = []


class RouteInfo(BaseModel):
    method: str
    methods: list[str]
    uri: str
    url: str
    host: str | None = None
    name: str | None = None
    action: str
    middleware: str


class Application(Protocol):
    """What the walker needs from the web application."""

    name: str
    url: str
    environment: str

    def routes(self) -> list[Route]: ...

    def handle(self, request: requests.PreparedRequest) -> Any: ...

    def find_user(self, user_id: Any) -> Any | None: ...

    def access_token_for(self, user: Any) -> str | None: ...


class InvocationKind(str, enum.Enum):
    REGISTERED = "registered"
    UNDOCUMENTED = "undocumented"
    INVOCATION_ERROR = "invocation_error"
    VALIDATION_ERROR = "validation_error"


class InvocationResult(BaseModel):
    """Outcome of sending one synthetic request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: InvocationKind
    route: RouteInfo
    call: APICall | None = None
    error: Exception | None = None


def route_information(route: Route, base_url: str) -> RouteInfo:
    """Split the details the walker needs out of a Route."""
    methods = [m.upper() for m in route.methods]
    if len(methods) == 1:
        method = methods[0]
    elif "GET" in methods:
        method = "GET"
    else:
        method = next((m for m in methods if m != "HEAD"), methods[0])

    return RouteInfo(
        method=method,
        methods=methods,
        uri=route.uri,
        url=base_url.rstrip("/") + "/" + route.uri.lstrip("/"),
        host=route.domain,
        name=route.name,
        action=route.action.lstrip("\\"),
        middleware=",".join(route.middleware),
    )


class RouteWalker:
    """Sends one request per API route and collects what got documented."""

    def __init__(self, app: Application, registry: DocRegistry, config: DocsConfig, user: Any = None):
        self.app = app
        self.registry = registry
        self.config = config
        self.user = user

    def api_routes(self) -> list[Route]:
        """Routes under the API prefix, in registration order."""
        prefix = self.config.route_prefix.strip("/")
        routes = []
        for route in self.app.routes():
            uri = route.uri.lstrip("/")
            if not prefix or uri == prefix or uri.startswith(prefix + "/"):
                routes.append(route)
        return routes

    def build_request(self, info: RouteInfo) -> requests.PreparedRequest:
        headers = {"Accept": "application/json"}

        api_key = self.config.api_key
        if api_key:
            headers["x-api-key"] = api_key
        else:
            logger.error("An API_KEY was not found in the configuration")

        if self.user is not None:
            access_token = self.app.access_token_for(self.user)
            if access_token:
                headers["x-access-token"] = access_token
            else:
                logger.error("An access token was not found for user %s", getattr(self.user, "id", self.user))

        return requests.Request(info.method, info.url, headers=headers).prepare()

    def invoke(self, route: Route) -> InvocationResult:
        info = route_information(route, self.config.app_url)
        request = self.build_request(info)

        logger.info("Sending %s request to %s...", info.method, info.url)

        with self.registry.intercept(info.method, info.uri, info.action) as interception:
            try:
                response = self.app.handle(request)
            except RequestValidationError as e:
                return InvocationResult(kind=InvocationKind.VALIDATION_ERROR, route=info, error=e)
            except (BadMethodCallError, MethodNotAllowedError) as e:
                if interception.registered:
                    return InvocationResult(kind=InvocationKind.REGISTERED, route=info, call=interception.call)
                return InvocationResult(kind=InvocationKind.INVOCATION_ERROR, route=info, error=e)

        if interception.registered:
            return InvocationResult(kind=InvocationKind.REGISTERED, route=info, call=interception.call)

        # the application may report handler errors on the response instead of raising
        error = getattr(response, "exception", None)
        if isinstance(error, RequestValidationError):
            return InvocationResult(kind=InvocationKind.VALIDATION_ERROR, route=info, error=error)
        if isinstance(error, (BadMethodCallError, MethodNotAllowedError)):
            return InvocationResult(kind=InvocationKind.INVOCATION_ERROR, route=info, error=error)

        return InvocationResult(kind=InvocationKind.UNDOCUMENTED, route=info)

    def walk(self) -> list[APICall]:
        """Invoke every API route; stop at the first route that fails."""
        documented = []
        for route in self.api_routes():
            result = self.invoke(route)
            url = result.route.url

            if result.kind == InvocationKind.REGISTERED:
                documented.append(result.call)
                continue

            if result.kind == InvocationKind.UNDOCUMENTED:
                raise UndocumentedAPIError(url)

            if result.kind == InvocationKind.INVOCATION_ERROR:
                if isinstance(result.error, MethodNotAllowedError):
                    logger.error("Route error accessing %s", url)
                    logger.error("Have you checked your middleware?")
                    logger.error(type(result.error).__name__)
                else:
                    logger.error("Route error on %s", url)
                    logger.error(str(result.error))
                raise result.error

            logger.error("Validation failed on %s. Have you documented this API?", url)
            logger.error(str(result.error))
            raise result.error

        if not documented:
            raise APICallsNotDefinedError()

        return documented
