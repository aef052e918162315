# -*- coding: utf-8 -*-

"""JSON schema helpers used by the actions."""

import copy
from typing import Any, Dict, Iterator, List, Mapping

import jsonschema
from jsonschema.validators import validator_for

from .errors import ValidationError

Schema = Dict[str, Any]


def _pointer(path: Any) -> str:
    """
    :return: the json pointer for a jsonschema error path, "" for the document root
    """
    segments = [str(segment).replace("~", "~0").replace("/", "~1") for segment in path]
    if not segments:
        return ""
    return "/" + "/".join(segments)


def _missing(error: jsonschema.ValidationError) -> Iterator[str]:
    instance = error.instance if isinstance(error.instance, Mapping) else {}
    return iter([name for name in error.validator_value if name not in instance])


def format_errors(errors: List[jsonschema.ValidationError]) -> List[Dict[str, Any]]:
    """
    Convert jsonschema errors to `{message, dataPath, schemaPath, params}` entries
    """
    result = []
    # jsonschema yields one "required" error per missing property, in the order of the schema
    missing: Dict[str, Iterator[str]] = {}
    for error in errors:
        data_path = _pointer(error.absolute_path)
        params: Dict[str, Any] = {}
        if error.validator == "required":
            key = data_path + _pointer(error.absolute_schema_path)
            if key not in missing:
                missing[key] = _missing(error)
            params["missingProperty"] = next(missing[key], None)
        elif error.validator in ("type", "enum", "format", "maxLength", "minLength", "maximum", "minimum", "pattern"):
            params[str(error.validator)] = error.validator_value
        result.append(
            {
                "message": error.message,
                "dataPath": data_path,
                "schemaPath": "#" + _pointer(error.absolute_schema_path),
                "params": params,
            }
        )
    return result


async def validate(data: Any, schema: Schema) -> bool:
    """
    Validate `data` against `schema`, all errors are collected

    :raise ValidationError: when `data` isn't valid, with one entry per violation
    :return: True
    """
    cls = validator_for(schema, default=jsonschema.Draft4Validator)
    validator = cls(schema)
    errors = sorted(validator.iter_errors(data), key=lambda error: _pointer(error.absolute_path))
    if errors:
        raise ValidationError("Schema validation failed", format_errors(errors))
    return True


def pick_allowed_values(schema: Schema, values: Any) -> Dict[str, Any]:
    """
    :return: the items of `values` that are declared in `schema` and aren't `readOnly`
    """
    if not isinstance(values, Mapping):
        return {}
    properties = schema.get("properties", {})
    allowed = [key for key, prop in properties.items() if not (isinstance(prop, Mapping) and prop.get("readOnly"))]
    return {key: values[key] for key in allowed if key in values}


def with_default(schema: Schema, values: Mapping[str, Any]) -> Schema:
    """
    :return: a copy of `schema` whose `default` is extended with `values`
    """
    result = copy.deepcopy(schema)
    result["default"] = {**(schema.get("default") or {}), **values}
    return result
