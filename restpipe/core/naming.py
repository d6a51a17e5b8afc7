"""
URL and table name derivation for model classes.

SecretWidget -> secret_widgets, Category -> categories, Box -> boxes.
"""

from __future__ import annotations

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_name(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", (name or "").strip()).lower()


def pluralize(word: str) -> str:
    if not word:
        return word
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


def plural_snake_name(model_type: type) -> str:
    return pluralize(snake_name(model_type.__name__))
