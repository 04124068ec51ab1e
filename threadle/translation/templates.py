"""Built-in prompt templates for role-specific explanations.

Templates are `str.format` strings using the fields `role`, `language`,
`style`, `style_guidance`, `custom_instructions`, and `conversation`.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

DEFAULT_TEMPLATE_NAME = "default"

ROLE_TEMPLATE_MAP: Mapping[str, str] = MappingProxyType(
    {
        "Engineering-Backend": "engineering-backend",
        "Engineering-Frontend": "engineering-frontend",
        "Engineering-Mobile": "engineering-frontend",
        "Design": "design",
        "Product": "product",
        "Marketing": "marketing",
        "QA": "engineering-backend",
        "Data": "engineering-backend",
    }
)

STYLE_GUIDANCE: Mapping[str, str] = MappingProxyType(
    {
        "ELI5": (
            "Explain it like I'm five: short sentences, everyday words, "
            "and no unexplained jargon."
        ),
        "Business Summary": (
            "Lead with the business impact, then list decisions, risks, and next steps "
            "as brief bullet points."
        ),
        "Technical Lite": (
            "Keep the key technical terms but define each one briefly the first time "
            "it appears."
        ),
        "Analogies Only": (
            "Explain every concept through concrete real-world analogies instead of "
            "technical detail."
        ),
    }
)

_SHARED_TAIL = """
Explanation style: {style}
{style_guidance}
{custom_instructions}
Write the whole explanation in {language}. Do not invent facts that are not in the
conversation. Sensitive values have already been replaced with [REDACTED]; never
guess what they were.

Conversation:
{conversation}
"""

_DEFAULT = (
    """You are helping a colleague whose role is {role} understand a Slack thread.
Summarize what the thread is about, what was decided, and what happens next.
"""
    + _SHARED_TAIL
)

_ENGINEERING_BACKEND = (
    """You are explaining a Slack thread to an engineer whose role is {role}.
Focus on services, data flow, APIs, infrastructure, and operational risk. Call out
anything that affects reliability, performance, or data correctness.
"""
    + _SHARED_TAIL
)

_ENGINEERING_FRONTEND = (
    """You are explaining a Slack thread to an engineer whose role is {role}.
Focus on user-facing behavior, UI components, client state, API contracts the client
depends on, and anything that changes what users see or do.
"""
    + _SHARED_TAIL
)

_DESIGN = (
    """You are explaining a Slack thread to a designer whose role is {role}.
Focus on user experience, flows, visual or interaction changes, and open questions
that need design input. Translate technical constraints into their effect on users.
"""
    + _SHARED_TAIL
)

_PRODUCT = (
    """You are explaining a Slack thread to a product teammate whose role is {role}.
Focus on scope, customer impact, timelines, trade-offs, and decisions that need a
product call. Keep implementation detail to what changes priorities or risk.
"""
    + _SHARED_TAIL
)

_MARKETING = (
    """You are explaining a Slack thread to a marketing teammate whose role is {role}.
Focus on what changes for customers, how it could be positioned, launch timing, and
any claims that must be verified before they are communicated externally.
"""
    + _SHARED_TAIL
)

BUILTIN_TEMPLATES: Mapping[str, str] = MappingProxyType(
    {
        DEFAULT_TEMPLATE_NAME: _DEFAULT,
        "engineering-backend": _ENGINEERING_BACKEND,
        "engineering-frontend": _ENGINEERING_FRONTEND,
        "design": _DESIGN,
        "product": _PRODUCT,
        "marketing": _MARKETING,
    }
)
