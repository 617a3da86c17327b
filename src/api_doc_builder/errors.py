"""Exception types raised while collecting and emitting API documentation."""


class ApiDocError(Exception):
    """Base class for all documentation generation failures."""


class ConfigurationError(ApiDocError):
    """The run cannot start with the given configuration."""


class ProductionEnvironmentError(ConfigurationError):
    def __init__(self, environment: str = "production"):
        super().__init__(
            f"Application in {environment} environment. "
            "This command cannot be run in this environment. Aborting..."
        )


class UserNotFoundError(ConfigurationError):
    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(
            f"A user with an ID of {user_id} is not found. Ensure this user exists "
            "or provide another user with the `--user-id` option."
        )


class NoRoutesError(ConfigurationError):
    def __init__(self):
        super().__init__("Your application doesn't have any routes. Aborting...")


class APICallsNotDefinedError(ApiDocError):
    def __init__(self):
        super().__init__(
            "No APICalls defined. Define the APICalls before trying to "
            "generate the documents again. Aborting..."
        )


class UndocumentedAPIError(ApiDocError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Route {url} does not have an API documented")


class DefinitionCollisionError(ApiDocError):
    """A synthesized response definition name is already taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Definition {name} already exists. "
            "Change the method group or name to be unique."
        )


class DefinitionConflictError(ApiDocError):
    """Two calls were registered under the same definition name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A definition named `{name}` is already registered")


class DuplicateRouteError(ApiDocError):
    def __init__(self, path: str, method: str):
        self.path = path
        self.method = method
        super().__init__(f"Route {method.upper()} {path} is documented more than once")


class MissingFieldNameError(ApiDocError):
    def __init__(self):
        super().__init__("The parameters requires a fieldname")


class FrozenDefinitionError(ApiDocError):
    """A Param or APICall was modified after registration."""


# Errors raised by the application while handling a synthetic request.


class BadMethodCallError(Exception):
    """The route points at a handler that does not exist."""


class MethodNotAllowedError(Exception):
    """The route rejected the HTTP method it was called with."""


class RequestValidationError(Exception):
    """Request input failed validation before the handler documented itself."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(self.merged_message())

    def merged_message(self) -> str:
        messages = [m for field_messages in self.errors.values() for m in field_messages]
        return " ".join(messages)

    def to_api_error(self) -> dict:
        """Build the 422 error payload returned to API clients."""
        return {
            "result": False,
            "message": self.merged_message(),
            "payload": {"errors": self.errors},
        }
