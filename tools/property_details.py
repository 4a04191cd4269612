#!/usr/bin/env python3
"""
property_details.py - V8 PropertyDetails layout catalog

PropertyDetails is the Smi-encoded word V8 stores next to each property in
descriptor arrays and dictionaries. Its bit layout changed between the V8
versions bundled with Node v0.10 and Node v0.12; both are kept here.

The layouts are authored as YAML documents embedded below and parsed once
at import. They are static: nothing in the tools mutates them.

Usage:
    from property_details import get_layout, DEFAULT_VERSION

    layout = get_layout('v0.10')
"""

from types import MappingProxyType
from typing import List

import yaml

from bitfield_schema import BitfieldLayout, load_layout


# V8 bundled with Node v0.10.24, src/property-details.h
PROPERTY_DETAILS_V010 = """
name: PropertyDetails
description: V8 PropertyDetails as of Node v0.10.24
fields:
  - name: PropertyType
    mode: enum
    offset: 0
    width: 3
    values:
      - NORMAL: 0
      - FIELD: 1
      - CONSTANT: 2
      - CALLBACKS: 3
      - HANDLER: 4
      - INTERCEPTOR: 5
      - TRANSITION: 6
      - NONEXISTENT: 7
  - name: PropertyAttributes
    mode: flags
    offset: 3
    width: 3
    values:
      - NONE: 0x00
      - READ_ONLY: 0x01
      - DONT_ENUM: 0x02
      - DONT_DELETE: 0x04
      - ABSENT: 0x10
  - name: DeletedField
    mode: flags
    offset: 6
    width: 1
    values:
      - DELETED: 0x01
  - name: DictionaryStorage
    mode: raw
    offset: 7
    width: 24
  - name: DescriptorStorage
    mode: raw
    offset: 7
    width: 11
  - name: DescriptorPointer
    mode: raw
    offset: 18
    width: 11
"""

# V8 bundled with Node v0.12
PROPERTY_DETAILS_V012 = """
name: PropertyDetails
description: V8 PropertyDetails as of Node v0.12
fields:
  - name: PropertyType
    mode: enum
    offset: 0
    width: 3
    values:
      - NORMAL: 0
      - FIELD: 1
      - CONSTANT: 2
      - CALLBACKS: 3
      - HANDLER: 4
      - INTERCEPTOR: 5
      - NONEXISTENT: 6
  - name: PropertyAttributes
    mode: flags
    offset: 3
    width: 3
    values:
      - NONE: 0x00
      - READ_ONLY: 0x01
      - DONT_ENUM: 0x02
      - DONT_DELETE: 0x04
      - STRING: 0x08
      - SYMBOLIC: 0x10
      - PRIVATE_SYMBOL: 0x20
      - ABSENT: 0x40
  - name: DeletedField
    mode: flags
    offset: 6
    width: 1
    values:
      - DELETED: 0x01
  - name: DictionaryStorage
    mode: raw
    offset: 7
    width: 24
  # Overlaps DeletedField: fast-mode properties reuse bit 6.
  - name: Representation
    mode: enum
    offset: 6
    width: 4
    values:
      - None: 0
      - Integer8: 1
      - UInteger8: 2
      - Integer16: 3
      - UInteger16: 4
      - Smi: 5
      - Integer32: 6
      - Double: 7
      - HeapObject: 8
      - Tagged: 9
      - External: 10
  - name: DescriptorPointer
    mode: raw
    offset: 10
    width: 10
  - name: FieldIndex
    mode: raw
    offset: 20
    width: 10
"""

DEFAULT_VERSION = 'v0.12'

LAYOUTS = MappingProxyType({
    'v0.10': load_layout(yaml.safe_load(PROPERTY_DETAILS_V010), version='v0.10'),
    'v0.12': load_layout(yaml.safe_load(PROPERTY_DETAILS_V012), version='v0.12'),
})


def known_versions() -> List[str]:
    return list(LAYOUTS)


def get_layout(version: str = DEFAULT_VERSION) -> BitfieldLayout:
    """Return the catalog layout for a V8/Node version key."""
    try:
        return LAYOUTS[version]
    except KeyError:
        raise KeyError(
            f"Unknown layout version '{version}' "
            f"(known: {', '.join(known_versions())})"
        ) from None
