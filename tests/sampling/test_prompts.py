from inline_snapshot import snapshot
from pydantic import BaseModel

from github_repo_agent.sampling.prompts import PromptBuilder, PromptSection, dump_yaml


class Owner(BaseModel):
    login: str
    repos: list[str]


def test_prompt_section():
    assert PromptSection(title="Task", level=2, section="\nDo the thing.\n").render_text() == "## Task\nDo the thing."


def test_dump_yaml_model():
    assert dump_yaml(Owner(login="acme", repos=["widget", "gadget"])) == snapshot("""\
login: acme
repos:
- widget
- gadget
""")


def test_prompt_builder():
    prompt = (
        PromptBuilder()
        .add_text_section(title="Task", text=["Write an email.", "Keep it short."])
        .add_list_section(title="Focus", items=["Speed", "Memory"], preamble="Focus on:")
        .render_text()
    )

    assert prompt == snapshot("""\
# Task
Write an email.
Keep it short.

# Focus
Focus on:
1. Speed
2. Memory\
""")
