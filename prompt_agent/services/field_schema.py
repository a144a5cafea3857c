"""
Nested field descriptors for topic prompts that must come back as JSON.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from prompt_agent.errors import FieldValidationError


@dataclass
class FieldSchema:
    """
    Describes one field of the expected JSON reply.

    ``type`` is one of string, number, array or object. ``fields`` holds the
    children of an object, or the item fields of an array of objects.
    """
    name: str
    type: str = 'string'
    description: str = ''
    fields: List['FieldSchema'] = field(default_factory=list)

    @property
    def is_object_array(self) -> bool:
        return self.type == 'array' and bool(self.fields) and self.fields[0].type == 'object'


def _render_fields(fields: List[FieldSchema], indent: str) -> str:
    text = ''
    for f in fields:
        if f.type == 'object':
            text += f'{indent}"{f.name}": {{\n'
            text += _render_fields(f.fields, indent + '  ')
            text += f'{indent}}},\n'
        elif f.type == 'array':
            if f.is_object_array:
                text += f'{indent}"{f.name}": [\n{indent}  {{\n'
                text += _render_fields(f.fields, indent + '    ')
                text += f'{indent}  }}\n{indent}],\n'
            else:
                text += f'{indent}"{f.name}": ["{f.description}"],\n'
        else:
            text += f'{indent}"{f.name}": "{f.description} ({f.type})",\n'
    return text


def build_schema_prompt(topic: str, fields: List[FieldSchema], instructions: Optional[List[str]] = None) -> str:
    """
    Build a prompt asking the model to explain ``topic`` as JSON with the
    given structure.

    Args:
        topic: Subject the model should describe.
        fields: Expected reply structure.
        instructions: Extra bullet-point instructions appended to the prompt.

    Returns:
        Prompt text ending with a "valid JSON only" reminder.
    """
    prompt = f'Please explain "{topic}" in JSON format with the following structure:\n{{\n'
    prompt += _render_fields(fields, '  ')
    prompt += '}\n'

    if instructions:
        prompt += 'Additional instructions:\n'
        for instruction in instructions:
            prompt += f'- {instruction}\n'

    prompt += 'Ensure valid JSON only, no extra text.'
    return prompt


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_fields(data: Any, fields: List[FieldSchema]) -> None:
    """
    Recursively check parsed JSON against field descriptors.

    Raises:
        FieldValidationError: On a non-object value, a missing field or a
            field of the wrong type.
    """
    if not isinstance(data, dict):
        raise FieldValidationError('top-level JSON is not an object')

    for f in fields:
        if f.name not in data:
            raise FieldValidationError(f'missing field: {f.name}')
        value = data[f.name]

        if f.type == 'string':
            if not isinstance(value, str):
                raise FieldValidationError(f"field '{f.name}' should be string")
        elif f.type == 'number':
            if not _is_number(value):
                raise FieldValidationError(f"field '{f.name}' should be number")
        elif f.type == 'array':
            if not isinstance(value, list):
                raise FieldValidationError(f"field '{f.name}' should be array")
            if f.is_object_array:
                for item in value:
                    try:
                        validate_fields(item, f.fields)
                    except FieldValidationError as e:
                        raise FieldValidationError(f"array item in '{f.name}' invalid: {e}") from e
        elif f.type == 'object':
            try:
                validate_fields(value, f.fields)
            except FieldValidationError as e:
                raise FieldValidationError(f"object field '{f.name}' invalid: {e}") from e
