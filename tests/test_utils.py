"""Tests for storysync.utils."""

from __future__ import annotations

import pytest

from storysync.utils import kebab_case, normalize_path, start_case


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Button", "button"),
        ("DropdownMenu", "dropdown-menu"),
        ("date_picker", "date-picker"),
        ("Radio  Group", "radio-group"),
        ("already-kebab", "already-kebab"),
        ("HTMLInput", "htmlinput"),
        ("", ""),
    ],
)
def test_kebab_case(value: str, expected: str) -> None:
    assert kebab_case(value) == expected


@pytest.mark.parametrize(
    "value",
    ["DropdownMenu", "some_Mixed Value", "aB_cD eF", "  spaced  ", "XMLHttpRequest", "a-B", "ünïcödeName"],
)
def test_kebab_case_is_idempotent(value: str) -> None:
    once = kebab_case(value)
    assert kebab_case(once) == once


def test_start_case() -> None:
    assert start_case("DatePicker") == "Date Picker"
    assert start_case("with-icon") == "With Icon"
    assert start_case("Primary") == "Primary"


def test_normalize_path() -> None:
    assert normalize_path("src\\components\\..\\ui\\Button.tsx") == "src/ui/Button.tsx"
    assert normalize_path("./a/./b") == "a/b"
