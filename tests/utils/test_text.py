"""Tests for input sanitising helpers."""

from __future__ import annotations

import pytest

from wpabilities.utils.text import (
    absint,
    kses_post,
    sanitize_email,
    sanitize_file_name,
    sanitize_text,
    sanitize_title,
    sanitize_user,
)


class TestAbsint:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(5, 5), (-5, 5), ("12abc", 12), ("-3", 3), ("abc", 0), (None, 0), (2.9, 2), (True, 1)],
    )
    def test_values(self, value: object, expected: int) -> None:
        assert absint(value) == expected


class TestSanitizers:
    def test_sanitize_text(self) -> None:
        assert sanitize_text("  <em>Hi</em>\n\tthere  ") == "Hi there"

    def test_sanitize_title(self) -> None:
        assert sanitize_title("Héllo, World! v2.0") == "hello-world-v2-0"

    def test_sanitize_email(self) -> None:
        assert sanitize_email(" a.b@example.com ") == "a.b@example.com"
        assert sanitize_email("not-an-email") == ""

    def test_sanitize_user(self) -> None:
        assert sanitize_user("<b>jane</b>!#") == "jane"

    def test_sanitize_file_name(self) -> None:
        assert sanitize_file_name("my (final) photo?.png") == "my-final-photo.png"

    def test_kses_post(self) -> None:
        html = '<p onclick="steal()">ok</p><style>p{}</style><SCRIPT>x()</SCRIPT>'
        assert kses_post(html) == "<p>ok</p>"
