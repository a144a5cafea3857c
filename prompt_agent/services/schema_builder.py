"""
Minimal JSON Schema helpers for structured chat output.

``schema_from_fields`` turns a flat map of dotted property names into a nested
JSON Schema string; ``generate_system_prompt_from_json_schema`` turns such a
schema into a strict system instruction for the model.
"""
import json
from typing import Any, Dict, Iterable, Optional, Tuple

TYPE_ALIASES = {
    'text': 'string',
    'string': 'string',
    'int': 'integer',
    'integer': 'integer',
    'float': 'number',
    'number': 'number',
    'bool': 'boolean',
    'boolean': 'boolean',
    'object': 'object',
    'array': 'array',
}

EXAMPLE_VALUES = {
    'string': 'example',
    'number': 0,
    'integer': 0,
    'boolean': True,
}


def normalize_type(type_name: str) -> str:
    """Map shorthand type names to JSON Schema types; unknown names pass through."""
    return TYPE_ALIASES.get(type_name.lower(), type_name)


def _parse_bool(text: str) -> bool:
    value = text.lower()
    if value in ('1', 't', 'true'):
        return True
    if value in ('0', 'f', 'false'):
        return False
    raise ValueError(f"invalid boolean: {text}")


def parse_type_and_default(spec: str) -> Tuple[str, Any]:
    """
    Split a property spec like ``"text=hello"`` into its type and default.

    The default is converted according to the type when possible and kept as
    a string otherwise. Returns ``(type, None)`` when there is no default.
    """
    parts = spec.split('=', 1)
    type_name = parts[0].strip() or 'string'
    if len(parts) == 1:
        return type_name, None

    default_text = parts[1].strip()
    kind = type_name.lower()
    try:
        if kind in ('integer', 'int'):
            return type_name, int(default_text)
        if kind in ('number', 'float'):
            return type_name, float(default_text)
        if kind in ('boolean', 'bool'):
            return type_name, _parse_bool(default_text)
    except ValueError:
        pass
    return type_name, default_text


def _add_required(obj: Dict[str, Any], name: str) -> None:
    required = obj.setdefault('required', [])
    if name not in required:
        required.append(name)


def schema_from_fields(props: Dict[str, str], required: Optional[Iterable[str]] = None) -> str:
    """
    Build a minimal JSON Schema (as a string) from property names and types.

    Dotted keys create nested objects, e.g. ``{"author.name": "text"}``.

    Args:
        props: Property path -> type spec (``"string"``, ``"int"``,
            ``"text=default"`` ...).
        required: Property paths to mark as required. Dotted paths are added
            to the ``required`` list of their parent object.

    Returns:
        JSON Schema serialized with sorted keys.

    Example:
        schema_from_fields({"name": "string", "age": "integer"}, ["name"])
    """
    required = list(required or [])
    required_set = set(required)
    schema: Dict[str, Any] = {'type': 'object', 'properties': {}}

    for key, spec in props.items():
        parts = key.split('.')
        type_name, default = parse_type_and_default(spec)
        type_name = normalize_type(type_name)

        current = schema
        for depth, part in enumerate(parts):
            properties = current['properties']
            if depth == len(parts) - 1:
                prop: Dict[str, Any] = {'type': type_name}
                if default is not None:
                    prop['default'] = default
                properties[part] = prop
                if '.'.join(parts[:depth + 1]) in required_set:
                    _add_required(current, part)
                continue

            existing = properties.get(part)
            if isinstance(existing, dict):
                # A leaf that later gains children becomes an object
                if 'properties' not in existing:
                    existing['type'] = 'object'
                    existing['properties'] = {}
                current = existing
            else:
                child = {'type': 'object', 'properties': {}}
                properties[part] = child
                current = child

    top_level = [name for name in required if '.' not in name]
    if top_level:
        schema['required'] = top_level

    return json.dumps(schema, sort_keys=True)


def schema_from_map(props: Dict[str, str]) -> str:
    """Convenience wrapper for schemas without required fields."""
    return schema_from_fields(props, None)


def _example_for(prop: Any) -> Any:
    if not isinstance(prop, dict) or not isinstance(prop.get('type'), str):
        return None

    prop_type = prop['type']
    if prop_type in EXAMPLE_VALUES:
        return EXAMPLE_VALUES[prop_type]
    if prop_type == 'object':
        return {}
    if prop_type == 'array':
        items = prop.get('items')
        if isinstance(items, dict) and isinstance(items.get('type'), str):
            item_type = items['type']
            if item_type in EXAMPLE_VALUES:
                return [EXAMPLE_VALUES[item_type]]
        return []
    return None


def build_example_from_schema(schema: str) -> str:
    """
    Build a small example JSON object from the schema's top-level properties.

    Returns an empty string when the schema does not parse or has no
    ``properties`` object.
    """
    try:
        parsed = json.loads(schema)
    except (TypeError, ValueError):
        return ''

    if not isinstance(parsed, dict):
        return ''
    properties = parsed.get('properties')
    if not isinstance(properties, dict):
        return ''

    example = {name: _example_for(prop) for name, prop in properties.items()}
    return json.dumps(example, sort_keys=True, separators=(',', ':'))


def generate_system_prompt_from_json_schema(schema: str) -> str:
    """Build a strict system instruction asking for JSON that matches ``schema``."""
    example = build_example_from_schema(schema)
    prompt = (
        "You are a strict JSON generator.\n"
        "Respond with a single JSON object that conforms exactly to the given JSON Schema.\n"
        "Do NOT include any surrounding text, explanations, or markdown. Output MUST be valid JSON.\n"
        "If you cannot produce a valid object, respond with an empty JSON object {}.\n"
        "JSON Schema:\n"
    )
    prompt += schema
    if example:
        prompt += "\nExample output:\n" + example
    return prompt
