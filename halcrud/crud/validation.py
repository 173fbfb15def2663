"""
JSON-schema validation for resource payloads.

One `SchemaValidator` is built per resource schema. It derives the full
schema (used on create) and a partial one with `required` dropped (used on
update) once, at construction; neither is modified afterwards.

Keys an object schema does not allow are removed wherever that schema sets
`additionalProperties: false`, at any depth, instead of being reported. A
root schema that declares `properties` without saying anything about
`additionalProperties` is treated as closed.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import ValidationError as SchemaError

from .exceptions import ValidationException


def _extra_keys(instance: dict, schema: Mapping[str, Any]) -> list[str]:
    declared = schema.get("properties") or {}
    patterns = schema.get("patternProperties") or {}
    return [
        key
        for key in instance
        if key not in declared and not any(re.search(p, key) for p in patterns)
    ]


def _strip_additional(validator, additional, instance, schema):
    if not validator.is_type(instance, "object"):
        return

    extras = _extra_keys(instance, schema)
    if additional is False:
        for key in extras:
            del instance[key]
    elif validator.is_type(additional, "object"):
        for key in extras:
            yield from validator.descend(instance[key], additional, path=key)


StrippingValidator = validators.extend(
    Draft7Validator, {"additionalProperties": _strip_additional}
)


def _error_field(error: SchemaError) -> str:
    path = [str(p) for p in error.absolute_path]
    # `required` reports against the parent object; name the missing field.
    if error.validator == "required" and isinstance(error.validator_value, list):
        missing = next(
            (name for name in error.validator_value if repr(name) in error.message),
            None,
        )
        if missing is not None:
            path.append(missing)
    return ".".join(path)


def _describe(error: SchemaError) -> dict[str, Any]:
    return {
        "field": _error_field(error),
        "keyword": str(error.validator),
        "message": error.message,
    }


class SchemaValidator:
    def __init__(self, schema: Mapping[str, Any]) -> None:
        full = copy.deepcopy(dict(schema))
        StrippingValidator.check_schema(full)
        if "additionalProperties" not in full and (
            "properties" in full or "patternProperties" in full
        ):
            full["additionalProperties"] = False
        partial = copy.deepcopy(full)
        partial.pop("required", None)

        self._full = StrippingValidator(full)
        self._partial = StrippingValidator(partial)

    def errors(self, data: Any, *, enforce_required: bool = True) -> list[dict[str, Any]]:
        """
        Validate `data` in place, dropping disallowed keys, and return every
        violation sorted by field.
        """
        validator = self._full if enforce_required else self._partial
        found = [_describe(e) for e in validator.iter_errors(data)]
        return sorted(found, key=lambda e: (e["field"], e["keyword"]))

    def validate(self, data: Mapping[str, Any], *, enforce_required: bool = True) -> dict[str, Any]:
        """
        Return a sanitized copy of `data` or raise `ValidationException`
        listing every violation.
        """
        if not isinstance(data, Mapping):
            raise ValidationException(
                [{"field": "", "keyword": "type", "message": "Payload must be a JSON object."}]
            )

        clean = copy.deepcopy(dict(data))
        found = self.errors(clean, enforce_required=enforce_required)
        if found:
            raise ValidationException(found)
        return clean
