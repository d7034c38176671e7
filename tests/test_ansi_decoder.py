"""Tests for the SGR console output decoder."""

import pytest

from execmon.core.decoding.ansi import decode_ansi_line, decode_ansi_lines, strip_ansi
from execmon.core.models.segment import StyledSegment

ESC = "\x1b"


def pairs(segments):
    return [(s.text, s.style_class) for s in segments]


class TestPlainText:

    def test_plain_line_is_one_unstyled_segment(self):
        assert decode_ansi_line("hello") == [StyledSegment(text="hello", style_class="")]

    def test_empty_line_has_no_segments(self):
        assert decode_ansi_line("") == []

    def test_codes_only_line_has_no_segments(self):
        assert decode_ansi_line(f"{ESC}[31m{ESC}[0m") == []

    def test_malformed_sequence_is_literal(self):
        line = f"{ESC}[31 not closed"
        assert pairs(decode_ansi_line(line)) == [(line, "")]

    def test_non_sgr_sequence_is_literal(self):
        line = f"{ESC}[2Kprogress"
        assert pairs(decode_ansi_line(line)) == [(line, "")]


class TestColors:

    def test_last_color_wins(self):
        segments = decode_ansi_line(f"{ESC}[31mred {ESC}[32mgreen")
        assert pairs(segments) == [("red ", "text-red-500"), ("green", "text-green-500")]

    def test_text_before_first_code_is_unstyled(self):
        segments = decode_ansi_line(f"  {ESC}[32m✓{ESC}[0m passes")
        assert pairs(segments) == [("  ", ""), ("✓", "text-green-500"), (" passes", "")]

    @pytest.mark.parametrize(
        "code, css",
        [
            ("33", "text-yellow-500"),
            ("34", "text-blue-500"),
            ("35", "text-purple-500"),
            ("36", "text-cyan-500"),
            ("91", "text-red-500"),
            ("96", "text-cyan-500"),
        ],
    )
    def test_standard_and_bright_colors(self, code, css):
        assert pairs(decode_ansi_line(f"{ESC}[{code}mx")) == [("x", css)]

    def test_empty_parameter_resets(self):
        segments = decode_ansi_line(f"{ESC}[31merr{ESC}[m ok")
        assert pairs(segments) == [("err", "text-red-500"), (" ok", "")]

    def test_unknown_codes_are_ignored(self):
        segments = decode_ansi_line(f"{ESC}[31ma{ESC}[4mb{ESC}[38;5;208mc")
        assert pairs(segments) == [("a", "text-red-500"), ("b", "text-red-500"), ("c", "text-red-500")]


class TestModifiers:

    def test_bold_and_color_combine(self):
        segments = decode_ansi_line(f"{ESC}[1m{ESC}[34mBold Blue")
        assert len(segments) == 1
        assert segments[0].text == "Bold Blue"
        assert set(segments[0].style_class.split()) == {"font-bold", "text-blue-500"}

    def test_color_change_keeps_bold(self):
        segments = decode_ansi_line(f"{ESC}[1m{ESC}[31ma{ESC}[32mb")
        assert set(segments[1].style_class.split()) == {"font-bold", "text-green-500"}

    def test_dim_modifier(self):
        assert pairs(decode_ansi_line(f"{ESC}[2mskipped")) == [("skipped", "opacity-70")]

    def test_bold_is_not_duplicated(self):
        segments = decode_ansi_line(f"{ESC}[1m{ESC}[1mtitle")
        assert segments[0].style_class == "font-bold"

    def test_compound_parameters(self):
        segments = decode_ansi_line(f"{ESC}[1;31mFAIL{ESC}[0m done")
        assert set(segments[0].style_class.split()) == {"font-bold", "text-red-500"}
        assert pairs(segments)[1] == (" done", "")

    @pytest.mark.parametrize(
        "code",
        ["38;5;1", "38;5;31", "48;5;2", "38;2;0;32;255", "48;2;1;2;94"],
    )
    def test_extended_colors_are_ignored(self, code):
        assert pairs(decode_ansi_line(f"{ESC}[{code}morange")) == [("orange", "")]

    def test_codes_after_extended_color_still_apply(self):
        segments = decode_ansi_line(f"{ESC}[38;5;208;1mwarn")
        assert pairs(segments) == [("warn", "font-bold")]

    def test_oversized_parameter_is_ignored(self):
        line = f"{ESC}[" + "1" * 5000 + "mtext"
        assert pairs(decode_ansi_line(line)) == [("text", "")]

    def test_padded_code_is_unknown(self):
        assert pairs(decode_ansi_line(f"{ESC}[0031mx")) == [("x", "")]


class TestLineIndependence:

    def test_style_does_not_leak_into_next_line(self):
        first, second = decode_ansi_lines([f"{ESC}[31mstill red", "plain"])
        assert pairs(first) == [("still red", "text-red-500")]
        assert pairs(second) == [("plain", "")]

    def test_repeated_calls_are_deterministic(self):
        line = f"{ESC}[33mwarn{ESC}[0m"
        assert decode_ansi_line(line) == decode_ansi_line(line)


class TestStripAnsi:

    def test_removes_sgr_codes_only(self):
        assert strip_ansi(f"{ESC}[1;32m✓{ESC}[0m ok {ESC}[2K") == f"✓ ok {ESC}[2K"

    def test_plain_text_unchanged(self):
        assert strip_ansi("no codes") == "no codes"
