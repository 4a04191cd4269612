#!/usr/bin/env python3
"""
bitfield_decoder.py - Decode a packed word against a bitfield layout

Decoding happens in three steps:

    1. smi_untag()   - drop the Smi tag bit (word >> 1). Always applied,
                       once, by the caller before decoding.
    2. extract_bits() - pull each sub-field's bit range out of the word.
    3. render_field() - turn the extracted bits into text according to the
                       sub-field's mode (raw / enum / flags).

describe_layout() prints the layout itself, without any word.

Usage:
    from bitfield_decoder import smi_untag, decode_word, format_decode
    from property_details import get_layout

    result = decode_word(get_layout('v0.12'), smi_untag(0x2a))
    print('\\n'.join(format_decode(result)))
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from bitfield_schema import BitfieldLayout, BitfieldMode, BitfieldSpec, Symbol


UNKNOWN_VALUE = 'UNKNOWN VALUE'

# Column width for right-aligned field and symbol names
NAME_WIDTH = 20


def smi_untag(word: int) -> int:
    """Strip the Smi tag: the low bit marks a small integer, not payload."""
    return word >> 1


def extract_bits(word: int, bit_offset: int, bit_width: int) -> int:
    """Return bits [bit_offset, bit_offset + bit_width) of word, shifted to bit 0."""
    mask = (1 << bit_width) - 1
    return (word >> bit_offset) & mask


def match_symbols(spec: BitfieldSpec, value: int) -> List[Symbol]:
    """
    Find the symbols an extracted value stands for.

    enum:  first declared symbol equal to value (at most one).
    flags: every declared symbol sharing a set bit with value, in declared
           order. A symbol whose value is 0 can never match.
    raw:   no symbols.
    """
    if spec.mode is BitfieldMode.ENUM:
        for sym in spec.symbols:
            if sym.value == value:
                return [sym]
        return []

    if spec.mode is BitfieldMode.FLAGS:
        return [sym for sym in spec.symbols if value & sym.value]

    return []


def render_field(spec: BitfieldSpec, value: int) -> str:
    """Render one extracted sub-field value as display text."""
    if spec.mode is BitfieldMode.RAW:
        return f"0x{value:x}"

    matched = match_symbols(spec, value)
    if spec.mode is BitfieldMode.ENUM:
        return matched[0].name if matched else UNKNOWN_VALUE

    # Each flag name keeps its trailing separator
    return ''.join(f"{sym.name} " for sym in matched)


@dataclass
class FieldValue:
    """Decoded value of one sub-field."""
    spec: BitfieldSpec
    raw: int
    symbols: List[Symbol] = field(default_factory=list)
    text: str = ''

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def known(self) -> bool:
        """False only for an enum value with no declared symbol."""
        return self.spec.mode is not BitfieldMode.ENUM or bool(self.symbols)


@dataclass
class DecodeResult:
    """Result of decoding one word against a layout."""
    layout: BitfieldLayout
    value: int
    fields: List[FieldValue] = field(default_factory=list)

    @property
    def unknown_fields(self) -> List[str]:
        return [fv.name for fv in self.fields if not fv.known]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'layout': self.layout.name,
            'version': self.layout.version,
            'untagged_value': self.value,
            'fields': {fv.name: fv.text for fv in self.fields},
            'unknown': self.unknown_fields,
        }


def decode_field(spec: BitfieldSpec, word: int) -> FieldValue:
    """Extract and render a single sub-field of an untagged word."""
    raw = extract_bits(word, spec.bit_offset, spec.bit_width)
    return FieldValue(
        spec=spec,
        raw=raw,
        symbols=match_symbols(spec, raw),
        text=render_field(spec, raw),
    )


def decode_word(layout: BitfieldLayout, word: int) -> DecodeResult:
    """Decode an already untagged word, field by field in declared order."""
    result = DecodeResult(layout=layout, value=word)
    for spec in layout.fields:
        result.fields.append(decode_field(spec, word))
    return result


def format_decode(result: DecodeResult) -> List[str]:
    """Text lines for a decoded word: header, then one line per field."""
    lines = [f"value 0x{result.value:x} as {result.layout.name}:"]
    for fv in result.fields:
        lines.append(f"    {fv.name:>{NAME_WIDTH}}: {fv.text}")
    return lines


def describe_field(spec: BitfieldSpec) -> List[str]:
    lines = [f"    {spec.name}: from bit {spec.bit_offset} "
             f"for {spec.bit_width} bits ({spec.mode.label})"]
    for sym in spec.symbols:
        lines.append(f"    {sym.name:>{NAME_WIDTH}} = 0x{sym.value:x}")
    return lines


def describe_layout(layout: BitfieldLayout) -> List[str]:
    """Text lines describing a layout: every field, its bits and symbols."""
    lines = [f"{layout.name}:"]
    for spec in layout.fields:
        lines.extend(describe_field(spec))
    return lines
