"""`{{key}}` placeholder substitution for action content.

Tokens whose key is missing from the context are left verbatim so that incomplete
data stays visible in the delivered content. Substituted values are never re-scanned.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def substitute(template: str | None, context: Mapping[str, object]) -> str | None:
    """Replace `{{key}}` tokens in `template` with values from `context`.

    A key that is absent, or whose value is None, keeps its original token.
    An empty or None template is returned unchanged.
    """

    if not template:
        return template

    def _replace(match: re.Match[str]) -> str:
        value = context.get(match.group(1))
        if value is None:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def find_placeholders(template: str | None) -> list[str]:
    """Return distinct placeholder names in order of first appearance."""

    if not template:
        return []
    seen: list[str] = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        if name not in seen:
            seen.append(name)
    return seen


def missing_placeholders(template: str | None, context: Mapping[str, object]) -> list[str]:
    return [name for name in find_placeholders(template) if context.get(name) is None]
