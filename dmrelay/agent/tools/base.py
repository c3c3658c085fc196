"""Base class for agent tools."""

from abc import ABC, abstractmethod
from typing import Any

_TYPE_MAP = {
    "string": str,
    "integer": int,
    "number": (int, float),
    "boolean": bool,
    "array": list,
    "object": dict,
}


class Tool(ABC):
    """
    Abstract base class for agent tools.

    Subclasses describe their parameters with a JSON schema; calls are
    validated against it before ``execute`` runs.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in function calls."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does, shown to the model."""

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON schema for the tool parameters."""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> str:
        """Run the tool and return its result as text."""

    def validate_params(self, params: dict[str, Any]) -> list[str]:
        """Validate parameters against the schema. Returns a list of errors."""
        schema = self.parameters or {}
        if schema.get("type", "object") != "object":
            raise ValueError(f"Schema must be object type, got {schema.get('type')!r}")
        return self._validate(params, {**schema, "type": "object"}, "")

    def _validate(self, value: Any, schema: dict[str, Any], path: str) -> list[str]:
        label = path or "parameter"
        expected = schema.get("type")
        if expected in _TYPE_MAP:
            py_type = _TYPE_MAP[expected]
            # bool is an int subclass; keep them apart
            if isinstance(value, bool) and expected in ("integer", "number"):
                return [f"{label} should be {expected}"]
            if not isinstance(value, py_type):
                return [f"{label} should be {expected}"]

        errors: list[str] = []
        if "enum" in schema and value not in schema["enum"]:
            errors.append(f"{label} must be one of {schema['enum']}")
        if expected in ("integer", "number"):
            if "minimum" in schema and value < schema["minimum"]:
                errors.append(f"{label} must be >= {schema['minimum']}")
            if "maximum" in schema and value > schema["maximum"]:
                errors.append(f"{label} must be <= {schema['maximum']}")
        if expected == "string":
            if "minLength" in schema and len(value) < schema["minLength"]:
                errors.append(f"{label} must be at least {schema['minLength']} chars")
            if "maxLength" in schema and len(value) > schema["maxLength"]:
                errors.append(f"{label} must be at most {schema['maxLength']} chars")
        if expected == "object":
            props = schema.get("properties", {})
            for key in schema.get("required", []):
                if key not in value:
                    errors.append(f"missing required {path + '.' + key if path else key}")
            for key, item in value.items():
                if key in props:
                    errors.extend(self._validate(item, props[key], path + "." + key if path else key))
        if expected == "array" and "items" in schema:
            for i, item in enumerate(value):
                errors.extend(self._validate(item, schema["items"], f"{label}[{i}]"))
        return errors

    def to_schema(self) -> dict[str, Any]:
        """Convert tool to OpenAI function schema format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
