import json
from typing import Any

from pydantic import BaseModel


def object_in_text_instructions(object_type: type[BaseModel]) -> str:
    """Instructions asking the model to answer with exactly one JSON block matching the model's schema."""

    json_schema: dict[str, Any] = object_type.model_json_schema()

    return f"""The only valid response to this request is a structured object of type {object_type.__name__}.

The schema for the object is:
```json
{json.dumps(obj=json_schema, indent=1)}
```

Place the JSON between ```json and ``` tags. Make sure every array, object and string is closed and that there are
no trailing commas. Any response other than the JSON block for {object_type.__name__} will be considered invalid."""


def extract_json_blocks_from_text(text: str) -> list[str]:
    """Extract the contents of all fenced code blocks from a text string."""

    blocks: list[str] = []
    current: list[str] | None = None

    for line in text.strip().splitlines():
        if line.strip().startswith("```"):
            if current is None:
                current = []
            else:
                blocks.append("\n".join(current))
                current = None
            continue

        if current is not None:
            current.append(line)

    return blocks


def extract_object_blocks_from_text(text: str) -> list[str]:
    """Extract the blocks of a text string that hold a JSON object.

    Fenced blocks holding anything else, such as shell commands or source code, are skipped. A bare JSON object
    without a fence counts as a block when the text has no fenced objects.
    """

    blocks: list[str] = [block for block in extract_json_blocks_from_text(text) if block.strip().startswith("{")]

    if not blocks and text.strip().startswith("{"):
        blocks = [text.strip()]

    return blocks


def extract_single_object_from_text[T: BaseModel](text: str, object_type: type[T]) -> T:
    """Extract an object from the single Markdown JSON block of a text string.

    A bare JSON object without a fence is accepted as well.

    Raises:
        ValueError: If the text does not contain exactly one JSON object block.
        pydantic.ValidationError: If the block does not match the object type.
    """

    blocks: list[str] = extract_object_blocks_from_text(text)

    if len(blocks) != 1:
        msg = f"Text must contain exactly one Markdown JSON block. Received {text[:500]}."
        raise ValueError(msg)

    return object_type.model_validate_json(blocks[0])
