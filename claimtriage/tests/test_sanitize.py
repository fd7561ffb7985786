import pytest

from claimtriage.api.core.sanitize import sanitize_string

SAMPLES = [
    "",
    "   ",
    "PN-12345",
    "  Austin, TX  ",
    "line one\nline two",
    "\x00\x01hidden\x7f",
    "tab\tseparated",
    " \x1f padded \x0b ",
    "Zürich ",
    "\x1b[31mred\x1b[0m",
]


def test_strips_control_characters_and_whitespace():
    assert sanitize_string("  \x00PN-\x0712345\x7f  ") == "PN-12345"


def test_keeps_inner_spaces_and_unicode():
    assert sanitize_string("  Rear-ended at a stop light ") == "Rear-ended at a stop light"
    assert sanitize_string("São Paulo") == "São Paulo"


@pytest.mark.parametrize("value", SAMPLES)
def test_idempotent(value):
    once = sanitize_string(value)
    assert sanitize_string(once) == once


@pytest.mark.parametrize("value", SAMPLES)
def test_output_has_no_control_characters(value):
    cleaned = sanitize_string(value)
    assert not any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in cleaned)
