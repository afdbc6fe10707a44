"""Placeholder substitution over content trees.

Every string leaf has its ``{{key}}`` placeholders replaced by the matching
variable. Keys may be dotted (``{{accountManager.name}}``) to reach into
nested variable maps. A placeholder whose key is missing, or whose value is
``None``, is left verbatim so partially configured proposals stay readable.

Substitution never mutates its input: pydantic models are copied with
``model_copy``, containers are rebuilt.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+(?:\.\w+)*)\}\}")

_MISSING = object()


def resolve_variable(variables: Mapping[str, Any], key: str) -> Any:
    """Look up ``key`` as a flat key first, then as a dotted path."""
    if key in variables:
        return variables[key]
    current: Any = variables
    for part in key.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def stringify(value: Any) -> str:
    """String form of a variable value as the viewer expects to see it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def substitute_text(text: str, variables: Mapping[str, Any]) -> str:
    def replace(match: re.Match) -> str:
        value = resolve_variable(variables, match.group(1))
        if value is _MISSING or value is None:
            return match.group(0)
        return stringify(value)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def substitute(node: Any, variables: Mapping[str, Any]) -> Any:
    """Return a copy of ``node`` with placeholders resolved in every string leaf.

    Handles pydantic models (declared fields and extra keys), dicts, lists,
    tuples and strings; any other value passes through unchanged.
    """
    if isinstance(node, str):
        return substitute_text(node, variables)
    if isinstance(node, BaseModel):
        update = {name: substitute(getattr(node, name), variables) for name in type(node).model_fields}
        for name, value in (node.model_extra or {}).items():
            update[name] = substitute(value, variables)
        return node.model_copy(update=update)
    if isinstance(node, dict):
        return {key: substitute(value, variables) for key, value in node.items()}
    if isinstance(node, list):
        return [substitute(item, variables) for item in node]
    if isinstance(node, tuple):
        return tuple(substitute(item, variables) for item in node)
    return node


def find_placeholders(node: Any) -> set[str]:
    """Collect the placeholder keys still present anywhere in ``node``."""
    found: set[str] = set()
    if isinstance(node, str):
        found.update(PLACEHOLDER_PATTERN.findall(node))
    elif isinstance(node, BaseModel):
        for name in type(node).model_fields:
            found |= find_placeholders(getattr(node, name))
        for value in (node.model_extra or {}).values():
            found |= find_placeholders(value)
    elif isinstance(node, dict):
        for value in node.values():
            found |= find_placeholders(value)
    elif isinstance(node, (list, tuple)):
        for item in node:
            found |= find_placeholders(item)
    return found
