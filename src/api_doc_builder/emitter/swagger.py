"""Swagger 2.0 / Postman emitter.

Both outputs share one translation pipeline. The `postman` flavor keeps
the security headers as visible parameters and uses a `{{domain}}`
placeholder for the host, and it also produces a Postman environment
holding one variable per parameter name.

Structure reference: https://swagger.io/docs/specification/2-0/basic-structure/
"""

import json
import logging
from pathlib import Path

from api_doc_builder.config import DocsConfig
from api_doc_builder.docs.api_call import APICall, ucwords
from api_doc_builder.docs.definitions import REF_PREFIX, ModelDefinition
from api_doc_builder.docs.param import Param
from api_doc_builder.docs.registry import DocRegistry
from api_doc_builder.errors import DefinitionCollisionError, DuplicateRouteError

logger = logging.getLogger(__name__)

FLAVORS = ("api", "postman")

OUTPUT_FILES = {
    "api": "swagger.json",
    "postman": "postman_collection.json",
}
ENVIRONMENT_FILE = "postman_environment.json"

SECURITY_HEADERS = {
    "x-api-key": "apiKey",
    "x-access-token": "accessToken",
}


def nested_field_name(name: str) -> str:
    """Rewrite a field path as array-of-object form keys.

    clinics.staff.dogs.name -> clinics[0][staff][0][dogs][0][name]
    """
    parts = name.split(".")
    if len(parts) == 1:
        return f"{parts[0]}[0]"

    result = f"{parts[0]}[0]"
    for part in parts[1:-1]:
        result += f"[{part}][0]"
    return result + f"[{parts[-1]}]"


def path_suffix(route: str, base_path: str) -> str:
    """Strip the base path from a route: `api/v1/users` -> `/users`."""
    base = base_path.strip("/")
    uri = route.lstrip("/")
    if base and (uri == base or uri.startswith(base + "/")):
        uri = uri[len(base):]
    if not uri.startswith("/"):
        uri = "/" + uri
    return uri


def response_object_name(call: APICall) -> str:
    name = ucwords(call.get_group() or "") + ucwords(call.get_name() or "")
    return name.replace("/", "").replace(" ", "") + "Response"


class SwaggerEmitter:
    """Translates registered APICalls into Swagger and Postman documents."""

    def __init__(
        self,
        registry: DocRegistry,
        config: DocsConfig,
        model_definition: ModelDefinition | None = None,
    ):
        self.registry = registry
        self.config = config
        self.model_definition = model_definition or ModelDefinition()

    def build(self, flavor: str = "api") -> tuple[dict, dict]:
        """Build the schema and the Postman environment for `flavor`."""
        if flavor not in FLAVORS:
            raise ValueError(f"The given type {flavor} is an invalid argument")

        host = "{{domain}}" if flavor == "postman" else self.config.host

        calls = self.registry.all_calls()
        self._register_models(calls)
        all_definitions = self.model_definition.get_all_definitions()

        schema = {
            "swagger": "2.0",
            "info": {
                "title": f"{self.config.app_name} Backend API",
                "version": "1.0.0",
            },
            "host": host,
            "schemes": ["https", "http"],
            "basePath": self.config.base_path,
            "paths": {},
            "securityDefinitions": {
                "apiKey": {
                    "type": "apiKey",
                    "name": "x-api-key",
                    "in": "header",
                },
                "accessToken": {
                    "type": "apiKey",
                    "name": "x-access-token",
                    "in": "header",
                    "description": "Unique user authentication token",
                },
            },
        }

        environment = {
            "name": f"{self.config.app_name} Environment",
            "_postman_variable_scope": "environment",
            "values": [
                {
                    "key": "domain",
                    "value": self.config.host,
                    "description": "Domain host",
                    "type": "string",
                    "enabled": True,
                }
            ],
        }
        env_keys = {"domain"}

        for call in calls:
            route = call.get_route()
            if not route:
                continue

            # get/post/put/delete/head
            method = call.get_method().lower()

            params, security = self._split_security(self._collect_params(call), flavor)

            parameters = []
            for param in params:
                data_type = param.get_data_type()

                # array fields are documented through their child fields
                if data_type == "Array":
                    continue

                # a `.` in the name marks a field of an array of objects
                name = param.get_name() or ""
                if "." in name:
                    name = nested_field_name(name)

                # already covered by `produces`
                if name == "Accept" and param.get_default_value() == "application/json":
                    continue

                location = param.get_location()
                if location is None:
                    location = Param.LOCATION_QUERY if method == "get" else Param.LOCATION_FORM

                model = param.get_model()
                if data_type == "Model" and model is not None:
                    parameters.append({
                        "name": "body",
                        "in": "body",
                        "required": param.get_required(),
                        "description": param.get_description(),
                        "schema": {
                            "$ref": REF_PREFIX + ModelDefinition.get_model_short_name(model),
                        },
                    })
                else:
                    parameters.append({
                        "name": name,
                        "in": location,
                        "required": param.get_required(),
                        "description": param.get_description(),
                        "type": data_type.lower(),
                    })

                if name not in env_keys:
                    env_keys.add(name)
                    environment["values"].append({
                        "key": name,
                        "value": param.get_default_value(),
                        "description": param.get_description(),
                        "type": data_type,
                        "enabled": True,
                    })

            suffix = path_suffix(route, self.config.base_path)

            consumes = call.get_consumes() or [APICall.CONSUME_FORM_URLENCODED]

            response_name = self._success_response(call, all_definitions)

            path_item = schema["paths"].setdefault(suffix, {})
            if method in path_item:
                if self.config.duplicate_routes == "error":
                    raise DuplicateRouteError(suffix, method)
                logger.warning("%s %s is documented more than once, the last one wins", method.upper(), suffix)

            path_item[method] = {
                "tags": [call.get_group()],
                "summary": call.get_name(),
                "consumes": consumes,
                "produces": ["application/json"],
                "description": call.get_description() or "",
                "parameters": parameters,
                "security": security,
                "responses": {
                    "200": {
                        "schema": {"$ref": REF_PREFIX + response_name},
                        "description": "Success response",
                    },
                    "401": {
                        "schema": {"$ref": REF_PREFIX + "ApiErrorUnauthorized"},
                        "description": "Authentication failed",
                    },
                    "403": {
                        "schema": {"$ref": REF_PREFIX + "ApiErrorAccessDenied"},
                        "description": "Access denied",
                    },
                    "422": {
                        "schema": {"$ref": REF_PREFIX + "ApiError"},
                        "description": "Generic API error. Check `message` for more information.",
                    },
                },
            }

        schema["definitions"] = all_definitions

        return schema, environment

    def write(self, flavor: str, output_dir: Path) -> list[Path]:
        """Write the documents for `flavor` into `output_dir`."""
        schema, environment = self.build(flavor)

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / OUTPUT_FILES[flavor]
        output_path.write_text(json.dumps(schema, indent=4), encoding="utf-8")
        written = [output_path]

        if flavor == "postman":
            environment_path = output_dir / ENVIRONMENT_FILE
            environment_path.write_text(json.dumps(environment, indent=4), encoding="utf-8")
            written.append(environment_path)

        return written

    def _collect_params(self, call: APICall) -> list[Param]:
        """Headers, params and everything pulled in through `use`."""
        collected = [*call.get_headers(), *call.get_params()]

        for defined_name in call.get_use():
            child = self.registry.find_by_definition(defined_name)
            if child is None:
                logger.warning(
                    "%s %s uses `%s`, which is not defined",
                    call.get_method(), call.get_route(), defined_name,
                )
                continue
            collected.extend(child.get_params())
            collected.extend(child.get_headers())

        # raw string directives only exist in the apiDoc output
        return [p for p in collected if isinstance(p, Param)]

    def _split_security(self, params: list[Param], flavor: str) -> tuple[list[Param], list[dict]]:
        security = []
        visible = []
        for param in params:
            if param.get_location() == Param.LOCATION_HEADER:
                scheme = SECURITY_HEADERS.get((param.get_name() or "").lower())
                if scheme is not None:
                    security.append({scheme: []})
                    if flavor == "api":
                        continue
            visible.append(param)
        return visible, security

    def _success_response(self, call: APICall, all_definitions: dict) -> str:
        success_object = call.get_success_object()
        paginated_object = call.get_success_paginated_object()
        if success_object is None and paginated_object is None:
            return "SuccessResponse"

        name = response_object_name(call)
        if paginated_object is not None:
            definition = self.model_definition.get_success_response_paginated_definition(name, paginated_object)
        else:
            definition = self.model_definition.get_success_response_definition(name, success_object)

        if name in all_definitions:
            raise DefinitionCollisionError(name)

        all_definitions.update(definition)
        return name

    def _register_models(self, calls: list[APICall]) -> None:
        for call in calls:
            for param in [*call.get_params(), *call.get_headers()]:
                if isinstance(param, Param) and param.get_data_type() == "Model" and param.get_model() is not None:
                    self.model_definition.register(param.get_model())
            for model in (call.get_success_object(), call.get_success_paginated_object()):
                if model is not None:
                    self.model_definition.register(model)

