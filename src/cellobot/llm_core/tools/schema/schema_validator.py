"""Turn Pydantic argument models into flat JSON schemas both vendors accept."""

from typing import Any, Dict, Set, Type, cast

import jsonref  # type: ignore
from pydantic import BaseModel

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

_METADATA_KEYS = ("$defs", "$schema", "$id", "title", "definitions")


class SchemaValidator:
    """
    Helper class for generating, validating and sanitizing JSON schemas for workbook tools.
    """

    @classmethod
    def schema_for_model(cls, args_model: Type[BaseModel]) -> Dict[str, Any]:
        """Build the parameter schema for a tool from its argument model.

        Args:
            args_model: Pydantic model describing the tool input. Field aliases become property names.

        Returns:
            A self-contained schema without ``$ref`` pointers or metadata keys.

        Raises:
            ToolValidationError: If the model contains recursive references.
        """
        raw_schema = args_model.model_json_schema(by_alias=True)
        cls.assert_no_recursive_refs(raw_schema)

        # proxies=False ensures we get a plain dict back, not JsonRef objects
        resolved = jsonref.replace_refs(raw_schema, proxies=False)
        return cast(Dict[str, Any], cls.sanitize_schema(resolved))

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Checks if the schema contains recursive references by traversing the graph.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                if "$ref" in node:
                    ref = node["$ref"]
                    if ref in path:
                        msg = (
                            f"Recursive structure detected: {ref}. "
                            "Recursive structures are not allowed in tool inputs."
                        )
                        logger.error(msg)
                        raise ToolValidationError(msg)

                    # e.g. #/$defs/SortCriterion
                    if ref.startswith("#"):
                        def_name = ref.split("/")[-1]
                        if def_name in defs:
                            check(defs[def_name], path | {ref})
                    return

                for v in node.values():
                    check(v, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up the schema for vendor compatibility.

        Removes metadata keys and ``null`` defaults, collapses ``Optional`` fields
        (``anyOf`` with null) into their single type, and enforces
        ``additionalProperties: false`` for objects.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        new_schema = {k: v for k, v in schema.items() if k not in _METADATA_KEYS}

        if "default" in new_schema and new_schema["default"] is None:
            del new_schema["default"]

        if "anyOf" in new_schema:
            non_null = [x for x in new_schema["anyOf"] if x.get("type") != "null"]
            if len(non_null) == 1 and isinstance(non_null[0], dict):
                merged = dict(non_null[0])
                # The parent description wins over the one on the branch
                if "description" in new_schema:
                    merged["description"] = new_schema["description"]
                return SchemaValidator.sanitize_schema(merged)

        if new_schema.get("type") == "object" and "additionalProperties" not in new_schema:
            new_schema["additionalProperties"] = False

        for key, value in new_schema.items():
            if key == "properties" and isinstance(value, dict):
                # Property names such as "title" are not metadata
                new_schema[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                new_schema[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                new_schema[key] = [SchemaValidator.sanitize_schema(item) for item in value]

        return new_schema
