"""Convert OpenAPI property and parameter names into Terraform attribute names.

Terraform attribute names are lowercase ``snake_case`` identifiers
(``^[a-z_][a-z0-9_]*$``).  OpenAPI names come in every style --
``petId``, ``X-Request-ID``, ``filter.status`` -- so every name that reaches
the canonical attribute tree goes through :func:`terraform_identifier`.
"""

from __future__ import annotations

import re

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-z0-9_]")


def terraform_identifier(name: str) -> str:
    """Convert *name* into a Terraform attribute name.

    Transformations, in order:

    1. CamelCase boundaries are split with underscores (``petId`` becomes
       ``pet_id``, ``XMLParser`` becomes ``xml_parser``).
    2. The string is lowercased.
    3. Hyphens, dots, spaces and any other invalid characters become
       underscores.
    4. Consecutive and leading/trailing underscores are collapsed.
    5. An empty result becomes ``"attribute"``; a leading digit gets an
       underscore prefix.

    Example::

        >>> terraform_identifier("petId")
        'pet_id'
        >>> terraform_identifier("X-Request-ID")
        'x_request_id'
        >>> terraform_identifier("2fa_enabled")
        '_2fa_enabled'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = _INVALID_IDENT_RE.sub("_", result.lower())
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        return "attribute"
    if result[0].isdigit():
        result = f"_{result}"
    return result


def is_terraform_identifier(name: str) -> bool:
    return bool(name) and terraform_identifier(name) == name
