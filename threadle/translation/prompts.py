"""Role-aware prompt composition for conversation explanations.

Responsibilities:
- Resolve a requester role to a template name with a `default` fallback.
- Render deterministic prompts from a profile, style, and message list.
- Load user-supplied template sets from a directory of `*.txt` files.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Mapping

from ..errors import ConfigurationError
from ..models.datatypes import ConversationMessage, RequesterProfile
from .templates import BUILTIN_TEMPLATES, DEFAULT_TEMPLATE_NAME, ROLE_TEMPLATE_MAP, STYLE_GUIDANCE

TEMPLATE_SUFFIX = ".txt"


class PromptComposer:
    """Build LLM prompts from role templates, requester profile, and conversation."""

    def __init__(
        self,
        templates: Mapping[str, str] | None = None,
        role_template_map: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize with template texts keyed by name and a role -> template map."""

        self.templates = dict(BUILTIN_TEMPLATES if templates is None else templates)
        self.role_template_map = dict(
            ROLE_TEMPLATE_MAP if role_template_map is None else role_template_map
        )

    @classmethod
    def from_directory(
        cls,
        directory: Path,
        role_template_map: Mapping[str, str] | None = None,
    ) -> PromptComposer:
        """Create a composer from `<name>.txt` template files in a directory."""

        if not directory.is_dir():
            raise ConfigurationError(f"Prompt template directory `{directory}` does not exist.")
        templates = {
            path.stem: path.read_text(encoding="utf-8")
            for path in sorted(directory.glob(f"*{TEMPLATE_SUFFIX}"))
        }
        return cls(templates=templates, role_template_map=role_template_map)

    def template_for_role(self, role: str) -> str:
        """Return the template name for a role, falling back to `default`."""

        return self.role_template_map.get(role, DEFAULT_TEMPLATE_NAME)

    def available_templates(self) -> list[str]:
        """Return registered template names."""

        return list(self.templates)

    def build(
        self,
        profile: RequesterProfile,
        messages: Sequence[ConversationMessage],
        style: str,
    ) -> str:
        """Render the prompt for a requester, conversation, and explanation style.

        Raises:
            ConfigurationError: The role resolves to a template that is not registered,
                or the template references an unknown field.
        """

        template_name = self.template_for_role(profile.role)
        template = self.templates.get(template_name)
        if template is None:
            raise ConfigurationError(f"Prompt template `{template_name}` is not registered.")

        custom_instructions = (profile.custom_instructions or "").strip()
        try:
            return template.format(
                role=profile.role,
                language=profile.language,
                style=style,
                style_guidance=STYLE_GUIDANCE.get(style, ""),
                custom_instructions=(
                    f"Additional instructions from the reader: {custom_instructions}\n"
                    if custom_instructions
                    else ""
                ),
                conversation=self.render_conversation(messages),
            )
        except (KeyError, IndexError) as exc:
            raise ConfigurationError(
                f"Prompt template `{template_name}` references an unknown field: {exc}."
            ) from exc

    @staticmethod
    def render_conversation(messages: Sequence[ConversationMessage]) -> str:
        """Render messages in order as `author: text` lines."""

        return "\n".join(f"{message.author}: {message.text}" for message in messages)
