from textwrap import dedent

import pytest
from pydantic import BaseModel, Field, ValidationError

from github_repo_agent.sampling.extract import (
    extract_json_blocks_from_text,
    extract_object_blocks_from_text,
    extract_single_object_from_text,
    object_in_text_instructions,
)


class StructuredObject(BaseModel):
    """A structured object docstring."""

    name: str = Field(description="The name of the object.")
    age: int = Field(description="The age of the object.")


def test_object_in_text_instructions():
    instructions = object_in_text_instructions(StructuredObject)

    assert instructions.startswith("The only valid response to this request is a structured object of type StructuredObject.")
    assert '"description": "The name of the object."' in instructions
    assert instructions.endswith("Any response other than the JSON block for StructuredObject will be considered invalid.")


def test_extract_json_blocks_from_text():
    text = dedent("""
    This is a test text that occurs before the json block.
    ```json
    {"name": "John", "age": 30}
    ```

    ```json
    {"name": "Jane", "age": 25}
    ```

    This is a test text that occurs after the json block.
    """)

    assert extract_json_blocks_from_text(text) == ['{"name": "John", "age": 30}', '{"name": "Jane", "age": 25}']


def test_extract_json_blocks_ignores_unclosed_block():
    assert extract_json_blocks_from_text('```json\n{"name": "John"') == []


def test_extract_single_object_from_text():
    text = dedent("""
    Yes, I would be happy to provide the information you requested in a json block.
    ```json
    {
        "name": "John",
        "age": 30
    }
    ```
    """)

    assert extract_single_object_from_text(text, StructuredObject) == StructuredObject(name="John", age=30)


def test_extract_single_object_without_fence():
    assert extract_single_object_from_text(' {"name": "John", "age": 30} ', StructuredObject) == StructuredObject(name="John", age=30)


def test_extract_single_object_requires_one_block():
    with pytest.raises(ValueError, match="exactly one Markdown JSON block"):
        _ = extract_single_object_from_text("No JSON here.", StructuredObject)

    with pytest.raises(ValueError, match="exactly one Markdown JSON block"):
        _ = extract_single_object_from_text('```\n{"name": "a", "age": 1}\n```\n```\n{"name": "b", "age": 2}\n```', StructuredObject)


def test_extract_single_object_invalid_object():
    with pytest.raises(ValidationError):
        _ = extract_single_object_from_text('```json\n{"name": "John"}\n```', StructuredObject)


def test_extract_object_blocks_skips_code_blocks():
    text = dedent("""
    Run this first:
    ```bash
    pip install widget
    ```
    ```json
    {"name": "John", "age": 30}
    ```
    """)

    assert extract_object_blocks_from_text(text) == ['{"name": "John", "age": 30}']
    assert extract_object_blocks_from_text("```python\nimport widget\n```") == []


def test_extract_single_object_ignores_code_blocks():
    with pytest.raises(ValueError, match="exactly one Markdown JSON block"):
        _ = extract_single_object_from_text("Install with:\n```bash\npip install widget\n```", StructuredObject)
