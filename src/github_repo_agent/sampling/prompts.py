from textwrap import dedent
from typing import Any, Self

import yaml
from pydantic import BaseModel, Field


class PromptSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The level of the section.")
    section: str = Field(description="The section of the prompt.")

    def render_text(self) -> str:
        return f"{'#' * self.level} {self.title}\n{self.section.strip()}"


def dump_yaml(value: Any) -> str:  # pyright: ignore[reportAny]
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")

    return yaml.safe_dump(value, indent=1, sort_keys=False, width=400)


class PromptBuilder(BaseModel):
    sections: list[PromptSection] = Field(default_factory=list, description="The sections of the prompt.")

    def add_text_section(self, title: str, text: str | list[str], level: int = 1) -> Self:
        if not isinstance(text, list):
            text = [text]

        self.sections.append(PromptSection(title=title, level=level, section="\n".join(dedent(line) for line in text)))

        return self

    def add_list_section(self, title: str, items: list[str], preamble: str | None = None, level: int = 1) -> Self:
        numbered: str = "\n".join(f"{number}. {item}" for number, item in enumerate(items, start=1))

        self.sections.append(PromptSection(title=title, level=level, section=f"{preamble}\n{numbered}" if preamble else numbered))

        return self

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections)
