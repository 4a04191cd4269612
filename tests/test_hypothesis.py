"""
test_hypothesis.py - Property-based testing with Hypothesis

Covers the decoder properties that must hold for every word:
- Decoding is deterministic
- Raw fields equal (v >> (offset + 1)) & mask after the Smi pre-shift
- Enum fields match at most one symbol, first declared wins
- Flag fields report exactly the symbols sharing a set bit
- The layout description lists the decoded fields in the same order

Run with:
    pytest tests/test_hypothesis.py -v
    pytest tests/test_hypothesis.py -v --hypothesis-show-statistics
"""

import pytest
from hypothesis import given, settings, assume
from hypothesis import strategies as st
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))
from bitfield_schema import BitfieldMode, BitfieldSpec, Symbol, WORD_BITS
from bitfield_decoder import (
    UNKNOWN_VALUE, decode_word, describe_layout, extract_bits,
    format_decode, match_symbols, render_field, smi_untag,
)
from property_details import LAYOUTS


# =============================================================================
# Strategies for generating test data
# =============================================================================

words = st.integers(min_value=0, max_value=2**WORD_BITS - 1)
u32_words = st.integers(min_value=0, max_value=2**32 - 1)
layouts = st.sampled_from(sorted(LAYOUTS.values(), key=lambda l: l.version))

symbol_names = st.text(alphabet='ABCDEFGHIJKLMNOPQRSTUVWXYZ_', min_size=1, max_size=12)


@st.composite
def bit_ranges(draw):
    width = draw(st.integers(min_value=1, max_value=32))
    offset = draw(st.integers(min_value=0, max_value=WORD_BITS - width))
    return offset, width


@st.composite
def symbol_tables(draw, width=4):
    values = draw(st.lists(st.integers(min_value=0, max_value=2**width - 1),
                           min_size=1, max_size=10))
    names = draw(st.lists(symbol_names, min_size=len(values),
                          max_size=len(values), unique=True))
    return tuple(Symbol(n, v) for n, v in zip(names, values))


# =============================================================================
# Property Tests: Decoder
# =============================================================================

class TestDeterminism:
    """Same word, same layout, same output."""

    @given(layouts, words)
    @settings(max_examples=300)
    def test_decode_is_deterministic(self, layout, word):
        first = format_decode(decode_word(layout, smi_untag(word)))
        second = format_decode(decode_word(layout, smi_untag(word)))
        assert first == second

    @given(layouts, words)
    def test_one_line_per_field(self, layout, word):
        lines = format_decode(decode_word(layout, smi_untag(word)))
        assert len(lines) == 1 + len(layout.fields)


class TestRawExtraction:
    """Raw fields are plain shifted and masked bits."""

    @given(words, bit_ranges())
    def test_extract_formula(self, word, bit_range):
        offset, width = bit_range
        value = extract_bits(word, offset, width)
        assert 0 <= value < (1 << width)
        assert value == (word >> offset) % (1 << width)

    @given(layouts, words)
    @settings(max_examples=300)
    def test_raw_fields_after_pre_shift(self, layout, word):
        result = decode_word(layout, smi_untag(word))
        for fv in result.fields:
            if fv.spec.mode is not BitfieldMode.RAW:
                continue
            expected = (word >> (fv.spec.bit_offset + 1)) & ((1 << fv.spec.bit_width) - 1)
            assert fv.raw == expected
            assert fv.text == f"0x{expected:x}"


class TestEnumMatching:
    """Enum fields show exactly one symbol or the unknown marker."""

    @given(symbol_tables(), st.integers(min_value=0, max_value=15))
    def test_first_declared_wins(self, symbols, value):
        spec = BitfieldSpec('e', BitfieldMode.ENUM, 0, 4, symbols)
        matched = match_symbols(spec, value)
        assert len(matched) <= 1

        candidates = [s for s in symbols if s.value == value]
        if candidates:
            assert matched == candidates[:1]
            assert render_field(spec, value) == candidates[0].name
        else:
            assert render_field(spec, value) == UNKNOWN_VALUE

    @given(layouts, words)
    def test_unknown_fields_are_enum_only(self, layout, word):
        result = decode_word(layout, smi_untag(word))
        for name in result.unknown_fields:
            assert layout.get_field(name).mode is BitfieldMode.ENUM


class TestFlagMatching:
    """Flag fields use bitwise-AND matching in declared order."""

    @given(symbol_tables(), st.integers(min_value=0, max_value=15))
    def test_and_rule(self, symbols, value):
        spec = BitfieldSpec('f', BitfieldMode.FLAGS, 0, 4, symbols)
        matched = match_symbols(spec, value)
        assert matched == [s for s in symbols if s.value & value]
        assert render_field(spec, value) == ''.join(f"{s.name} " for s in matched)

    @given(symbol_tables(), st.integers(min_value=0, max_value=15))
    def test_zero_symbol_never_shown(self, symbols, value):
        assume(any(s.value == 0 for s in symbols))
        spec = BitfieldSpec('f', BitfieldMode.FLAGS, 0, 4, symbols)
        assert all(s.value != 0 for s in match_symbols(spec, value))


class TestDescribeMatchesDecode:
    """-c output lists the same fields as the decode, in the same order."""

    @given(layouts, u32_words)
    def test_field_order(self, layout, word):
        described = [line.split(':')[0].strip()
                     for line in describe_layout(layout)
                     if ': from bit' in line]
        decoded = [line.split(':')[0].strip()
                   for line in format_decode(decode_word(layout, smi_untag(word)))[1:]]
        assert described == decoded


if __name__ == '__main__':
    pytest.main([__file__, '-v', '--hypothesis-show-statistics'])
