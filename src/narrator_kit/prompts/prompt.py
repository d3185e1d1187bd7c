# src/narrator_kit/prompts/prompt.py

import re

from pydantic import BaseModel

from narrator_kit.errors import UsageError

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class Prompt(BaseModel):
    name: str
    version: str
    description: str
    inputs: dict[str, str]
    template: str

    class Config:
        extra = "forbid"

    def render(self, **values: object) -> str:
        """Substitute `{{ name }}` placeholders.

        Raises:
            UsageError: If a declared input has no value.
        """
        missing = [name for name in self.inputs if name not in values]
        if missing:
            raise UsageError(
                f"Prompt '{self.name}' is missing inputs: {', '.join(missing)}"
            )

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in values:
                return match.group(0)
            return str(values[key])

        return _PLACEHOLDER.sub(substitute, self.template)
