"""
Unit Tests for name derivation.
"""

from __future__ import annotations

import pytest

from restpipe.core.naming import plural_snake_name, pluralize, snake_name


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Widget", "widget"),
        ("SecretWidget", "secret_widget"),
        ("HTTPLog", "http_log"),
        ("UserType2", "user_type2"),
    ],
)
def test_snake_name(name: str, expected: str) -> None:
    assert snake_name(name) == expected


@pytest.mark.parametrize(
    "word, expected",
    [
        ("widget", "widgets"),
        ("box", "boxes"),
        ("batch", "batches"),
        ("category", "categories"),
        ("day", "days"),
        ("status", "statuses"),
    ],
)
def test_pluralize(word: str, expected: str) -> None:
    assert pluralize(word) == expected


def test_plural_snake_name_uses_class_name() -> None:
    class SecretWidget:
        pass

    assert plural_snake_name(SecretWidget) == "secret_widgets"
