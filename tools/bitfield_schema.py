#!/usr/bin/env python3
"""
bitfield_schema.py - Bitfield layout model for packed metadata words

A layout describes how one machine word packs several named sub-fields.
Each sub-field (a BitfieldSpec) occupies a bit range and is interpreted in
one of three modes:

    raw    - opaque number, shown in hex
    enum   - exactly one of a set of mutually exclusive values
    flags  - any combination of independent flag bits

Layouts are authored as plain dicts (usually parsed from YAML) and turned
into immutable objects by load_layout(), which validates the structure
first and raises SchemaError listing every defect it found.

Layout dict format:
    name: PropertyDetails
    description: optional free text
    fields:
      - name: PropertyType
        mode: enum
        offset: 0
        width: 3
        values:
          - NORMAL: 0
          - FIELD: 1

Usage:
    from bitfield_schema import load_layout

    layout = load_layout(yaml.safe_load(text), version='v0.12')
    for spec in layout.fields:
        print(spec.name, spec.bit_offset, spec.bit_width)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# Width of the word a layout may address (a 64-bit unsigned long)
WORD_BITS = 64


class BitfieldMode(Enum):
    """Interpretation mode of a sub-field."""
    RAW = 'raw'
    ENUM = 'enum'
    FLAGS = 'flags'

    @property
    def label(self) -> str:
        return MODE_LABELS[self]


MODE_LABELS = {
    BitfieldMode.RAW: 'raw value',
    BitfieldMode.ENUM: 'exclusive values',
    BitfieldMode.FLAGS: 'overlapping flags',
}


class SchemaError(ValueError):
    """Raised when a layout definition is malformed."""

    def __init__(self, errors: List[str], name: str = 'layout'):
        self.errors = list(errors)
        detail = '; '.join(self.errors)
        super().__init__(f"Invalid {name}: {detail}")


@dataclass(frozen=True)
class Symbol:
    """A named value of an enum or flags sub-field."""
    name: str
    value: int


@dataclass(frozen=True)
class BitfieldSpec:
    """One named bit range within a layout."""
    name: str
    mode: BitfieldMode
    bit_offset: int
    bit_width: int
    symbols: Tuple[Symbol, ...] = ()

    @property
    def bit_mask(self) -> int:
        return (1 << self.bit_width) - 1

    @property
    def bit_end(self) -> int:
        """Index one past the most significant bit of this field."""
        return self.bit_offset + self.bit_width


@dataclass(frozen=True)
class BitfieldLayout:
    """Named, ordered decomposition of one word.

    Field order is the author's display order, not bit order. Bit ranges
    may overlap when a layout describes alternative storage modes.
    """
    name: str
    fields: Tuple[BitfieldSpec, ...]
    version: Optional[str] = None
    description: str = ''

    def field_names(self) -> List[str]:
        return [spec.name for spec in self.fields]

    def get_field(self, name: str) -> BitfieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"Layout '{self.name}' has no field '{name}'")


def _is_int(value: Any) -> bool:
    # YAML booleans are ints to Python; they are never valid here
    return isinstance(value, int) and not isinstance(value, bool)


def _iter_symbols(values: Any) -> List[Tuple[Any, Any]]:
    """Flatten a values list of single-entry mappings to (name, value) pairs."""
    pairs = []
    for entry in values:
        if isinstance(entry, dict) and len(entry) == 1:
            pairs.extend(entry.items())
        else:
            pairs.append((None, entry))
    return pairs


def validate_values(values: Any, path: str, errors: List[str]) -> None:
    """Validate the symbol table of an enum or flags field."""
    if not isinstance(values, list):
        errors.append(f"{path}: 'values' must be an array")
        return

    seen = set()
    for vi, (sym_name, sym_value) in enumerate(_iter_symbols(values)):
        vpath = f"{path}.values[{vi}]"
        if sym_name is None:
            errors.append(f"{vpath}: must be a single NAME: value mapping")
            continue
        if not isinstance(sym_name, str) or not sym_name:
            errors.append(f"{vpath}: symbol name must be a non-empty string")
        elif sym_name in seen:
            errors.append(f"{vpath}: duplicate symbol '{sym_name}'")
        else:
            seen.add(sym_name)
        if not _is_int(sym_value) or sym_value < 0:
            errors.append(f"{vpath} ({sym_name}): value must be a non-negative integer")


def validate_field_list(fields: List[Any], errors: List[str],
                        word_bits: int = WORD_BITS) -> None:
    """Validate a list of sub-field definitions."""
    known_modes = {m.value for m in BitfieldMode}
    seen_names = set()

    for i, fld in enumerate(fields):
        path = f"fields[{i}]"
        if not isinstance(fld, dict):
            errors.append(f"{path}: must be an object")
            continue

        name = fld.get('name')
        if not isinstance(name, str) or not name:
            errors.append(f"{path}: missing required 'name'")
        elif name in seen_names:
            errors.append(f"{path} ({name}): duplicate field name")
        else:
            seen_names.add(name)
            path = f"{path} ({name})"

        mode = fld.get('mode')
        if not isinstance(mode, str) or mode not in known_modes:
            errors.append(f"{path}: 'mode' must be one of {', '.join(sorted(known_modes))}, got {mode!r}")

        offset = fld.get('offset')
        width = fld.get('width')
        if not _is_int(offset) or offset < 0:
            errors.append(f"{path}: 'offset' must be a non-negative integer")
            offset = None
        if not _is_int(width) or width <= 0:
            errors.append(f"{path}: 'width' must be a positive integer")
            width = None
        if offset is not None and width is not None and offset + width > word_bits:
            errors.append(f"{path}: bits {offset}..{offset + width - 1} exceed the {word_bits}-bit word")

        if mode == BitfieldMode.RAW.value:
            if fld.get('values'):
                errors.append(f"{path}: raw field must not declare 'values'")
        elif isinstance(mode, str) and mode in known_modes:
            validate_values(fld.get('values', []), path, errors)


def validate_layout_structure(layout: Any, word_bits: int = WORD_BITS) -> List[str]:
    """Validate a layout dict and return a list of errors."""
    errors = []
    if not isinstance(layout, dict):
        return ["Layout must be an object"]

    if 'name' not in layout:
        errors.append("Missing required field: 'name'")
    elif not isinstance(layout['name'], str) or not layout['name']:
        errors.append("'name' must be a non-empty string")

    fields = layout.get('fields')
    if fields is None:
        errors.append("Missing required field: 'fields'")
    elif not isinstance(fields, list):
        errors.append("'fields' must be an array")
    elif len(fields) == 0:
        errors.append("'fields' array must not be empty")
    else:
        validate_field_list(fields, errors, word_bits)

    return errors


def spec_from_dict(fld: Dict[str, Any]) -> BitfieldSpec:
    """Build a BitfieldSpec from an already validated field dict."""
    mode = BitfieldMode(fld['mode'])
    symbols = ()
    if mode is not BitfieldMode.RAW:
        symbols = tuple(Symbol(name, value)
                        for name, value in _iter_symbols(fld.get('values', [])))
    return BitfieldSpec(
        name=fld['name'],
        mode=mode,
        bit_offset=fld['offset'],
        bit_width=fld['width'],
        symbols=symbols,
    )


def load_layout(layout: Dict[str, Any], version: Optional[str] = None,
                word_bits: int = WORD_BITS) -> BitfieldLayout:
    """Validate a layout dict and build the immutable layout.

    Raises:
        SchemaError: if the dict is malformed (all errors are reported).
    """
    errors = validate_layout_structure(layout, word_bits)
    if errors:
        name = layout.get('name', 'layout') if isinstance(layout, dict) else 'layout'
        raise SchemaError(errors, name=str(name))

    return BitfieldLayout(
        name=layout['name'],
        fields=tuple(spec_from_dict(fld) for fld in layout['fields']),
        version=version if version is not None else layout.get('version'),
        description=layout.get('description', '') or '',
    )
