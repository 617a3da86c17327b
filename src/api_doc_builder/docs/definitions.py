"""Swagger `definitions` built from pydantic models.

Params with a `Model` data type and the success objects of an APICall
reference pydantic model classes. Their JSON schemas are published under
their class name, next to the standard API envelopes.
"""

import logging
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

REF_PREFIX = "#/definitions/"

BASE_DEFINITIONS: dict[str, dict] = {
    "SuccessResponse": {
        "type": "object",
        "properties": {
            "message": {"type": "string"},
            "payload": {"type": "object"},
            "result": {"type": "boolean", "default": True},
        },
    },
    "ApiError": {
        "type": "object",
        "properties": {
            "message": {"type": "string"},
            "payload": {"type": "object"},
            "result": {"type": "boolean", "default": False},
        },
    },
    "ApiErrorUnauthorized": {
        "type": "object",
        "properties": {
            "message": {"type": "string", "example": "Authentication failed."},
            "payload": {"type": "object"},
            "result": {"type": "boolean", "default": False},
        },
    },
    "ApiErrorAccessDenied": {
        "type": "object",
        "properties": {
            "message": {"type": "string", "example": "Access denied."},
            "payload": {"type": "object"},
            "result": {"type": "boolean", "default": False},
        },
    },
    "Paginator": {
        "type": "object",
        "properties": {
            "current_page": {"type": "integer"},
            "per_page": {"type": "integer"},
            "from": {"type": "integer"},
            "to": {"type": "integer"},
            "total": {"type": "integer"},
            "last_page": {"type": "integer"},
            "first_page_url": {"type": "string"},
            "last_page_url": {"type": "string"},
            "next_page_url": {"type": "string"},
            "prev_page_url": {"type": "string"},
        },
    },
}


class ModelDefinition:
    """Collects model schemas and synthesizes success response envelopes."""

    def __init__(self, models: list[type[BaseModel]] | None = None):
        self._models: dict[str, type[BaseModel]] = {}
        for model in models or []:
            self.register(model)

    def register(self, model: Any) -> None:
        name = self.get_model_short_name(model)
        existing = self._models.get(name)
        if existing is not None and existing is not model:
            logger.warning("Two models share the short name %s, keeping the first one", name)
            return
        self._models[name] = model

    @staticmethod
    def get_model_short_name(model: Any) -> str:
        if isinstance(model, type):
            return model.__name__
        return type(model).__name__

    def get_all_definitions(self) -> dict[str, dict]:
        definitions = {name: _copy(schema) for name, schema in BASE_DEFINITIONS.items()}
        for name, model in self._models.items():
            definitions.update(self._model_schemas(name, model))
        return definitions

    def get_success_response_definition(self, name: str, model: Any) -> dict[str, dict]:
        return {
            name: {
                "type": "object",
                "properties": {
                    "message": {"type": "string"},
                    "payload": {"$ref": REF_PREFIX + self.get_model_short_name(model)},
                    "result": {"type": "boolean", "default": True},
                },
            }
        }

    def get_success_response_paginated_definition(self, name: str, model: Any) -> dict[str, dict]:
        return {
            name: {
                "type": "object",
                "properties": {
                    "message": {"type": "string"},
                    "payload": {
                        "type": "array",
                        "items": {"$ref": REF_PREFIX + self.get_model_short_name(model)},
                    },
                    "paginator": {"$ref": REF_PREFIX + "Paginator"},
                    "result": {"type": "boolean", "default": True},
                },
            }
        }

    def _model_schemas(self, name: str, model: Any) -> dict[str, dict]:
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            return {name: {"type": "object"}}

        schema = model.model_json_schema(ref_template=REF_PREFIX + "{model}")
        nested = schema.pop("$defs", {})
        schema.pop("title", None)
        schemas = {name: schema}
        for nested_name, nested_schema in nested.items():
            nested_schema.pop("title", None)
            schemas.setdefault(nested_name, nested_schema)
        return schemas


def _copy(schema: dict) -> dict:
    return {k: _copy(v) if isinstance(v, dict) else v for k, v in schema.items()}
