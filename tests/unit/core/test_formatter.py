"""Tests for report formatting and byte truncation."""

import re
from datetime import timedelta

import pytest

from taskmon.core.formatter import (
    MAX_BYTES_TO_POST,
    FormatOptions,
    format_duration,
    format_report,
    truncate_bytes,
)
from taskmon.core.result import ExecutionResult, Exited, Signaled

# 12 bytes of UTF-8: two 4-byte flags, a 3-byte symbol and a space
PART = "🇺🇸⚾ "


def make_result(output=b"", code=0, elapsed=timedelta(milliseconds=5)):
    return ExecutionResult(
        output=output, status=Exited(code=code), elapsed=elapsed
    )


def test_short_output_is_unchanged():
    """Output under the budget is reported as-is."""
    payload = format_report(make_result(b"hello\n"), ["echo", "hello"])

    assert payload.text == "hello\n"
    assert payload.exit_code == 0


def test_exit_code_carried_through():
    """The normalized exit code is attached to the payload."""
    payload = format_report(make_result(b"failed\n", code=5), ["false"])

    assert payload.exit_code == 5


def test_signal_exit_code():
    """Signal termination is reported as 128 + signal."""
    result = ExecutionResult(
        output=b"", status=Signaled(signal=9), elapsed=timedelta()
    )

    assert format_report(result, ["sleep", "100"]).exit_code == 137


def test_log_only_has_no_exit_code():
    """Log-only payloads never carry an exit code."""
    options = FormatOptions(log_only=True)

    for code in (0, 1, 127):
        payload = format_report(make_result(b"x", code=code), ["x"], options)
        assert payload.exit_code is None


def test_detailed_format():
    """Detailed mode wraps output with command, exit code, duration."""
    payload = format_report(
        make_result(b"hello\n", elapsed=timedelta(seconds=1.5)),
        ["echo", "hello"],
        FormatOptions(detailed=True),
    )

    assert payload.text == (
        "$ echo hello 2>&1\nhello\n\n\nExit Code: 0\nDuration: 1.500s"
    )


def test_detailed_with_environment():
    """Environment lines come first, one KEY=VALUE per line."""
    options = FormatOptions(
        detailed=True, environment={"HOME": "/root", "LANG": "C"}
    )
    payload = format_report(make_result(b"hi\n"), ["echo", "hi"], options)

    assert payload.text.startswith("HOME=/root\nLANG=C\n$ echo hi 2>&1\n")


def test_environment_ignored_without_detailed():
    """An environment snapshot alone doesn't change the report."""
    options = FormatOptions(environment={"HOME": "/root"})
    payload = format_report(make_result(b"hi\n"), ["echo", "hi"], options)

    assert payload.text == "hi\n"


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [
        (timedelta(microseconds=1500), "1.500ms"),
        (timedelta(milliseconds=999), "999.000ms"),
        (timedelta(seconds=2.5), "2.500s"),
        (timedelta(minutes=2), "120.000s"),
    ],
)
def test_format_duration(elapsed, expected):
    assert format_duration(elapsed) == expected


def test_output_at_budget_is_unchanged():
    """Exactly max_bytes of output is not truncated."""
    text = "a" * MAX_BYTES_TO_POST

    assert truncate_bytes(text, MAX_BYTES_TO_POST) == text


def test_tail_truncation_keeps_last_bytes():
    """By default the most recent output is kept."""
    text = "a" * 50 + "b" * 50

    assert truncate_bytes(text, 50) == "b" * 50


def test_head_truncation_keeps_first_bytes():
    """Head mode keeps the earliest output."""
    text = "a" * 50 + "b" * 50

    assert truncate_bytes(text, 50, head=True) == "a" * 50


def test_tail_truncation_multibyte_boundary():
    """A character split by the cut is dropped, not mangled."""
    output = (PART * 1000 + "\n").encode("utf-8")
    payload = format_report(make_result(output), ["echo"])

    assert len(payload.text.encode("utf-8")) == 9998
    assert payload.text.startswith(" " + PART)
    assert payload.text.endswith(PART + "\n")
    assert "�" not in payload.text


def test_head_truncation_multibyte_boundary():
    """Head mode drops a partial character at the end."""
    output = ("x" + PART * 1000).encode("utf-8")
    payload = format_report(
        make_result(output), ["echo"], FormatOptions(head=True)
    )

    assert payload.text.startswith("x" + PART)
    assert len(payload.text.encode("utf-8")) <= MAX_BYTES_TO_POST
    assert "�" not in payload.text


@pytest.mark.parametrize("head", [False, True])
@pytest.mark.parametrize("offset", range(12))
def test_truncation_never_exceeds_budget(offset, head):
    """Whatever the alignment, results fit and have no broken edges."""
    text = "x" * offset + PART * 1000
    truncated = truncate_bytes(text, MAX_BYTES_TO_POST, head=head)

    size = len(truncated.encode("utf-8"))
    assert MAX_BYTES_TO_POST - 4 < size <= MAX_BYTES_TO_POST
    assert not truncated.startswith("�")
    assert not truncated.endswith("�")


def test_detailed_output_is_truncated_too():
    """The budget applies to the whole report, not just the output."""
    payload = format_report(
        make_result(b"z" * 20000),
        ["yes"],
        FormatOptions(detailed=True),
    )

    assert len(payload.text.encode("utf-8")) == MAX_BYTES_TO_POST
    assert re.search(r"Exit Code: 0\nDuration: \S+$", payload.text)


def test_formatting_is_deterministic():
    """Same inputs, same payload."""
    result = make_result(PART.encode("utf-8") * 2000, code=3)
    options = FormatOptions(detailed=True, environment={"A": "1"})

    first = format_report(result, ["cmd", "arg"], options)
    second = format_report(result, ["cmd", "arg"], options)

    assert first == second
