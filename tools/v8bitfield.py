#!/usr/bin/env python3
"""
v8bitfield.py - Print V8 PropertyDetails bitfields

Decodes a PropertyDetails word copied out of a memory dump. The word is
treated as a Smi: its tag bit is shifted off before any field is decoded.

Usage:
    python tools/v8bitfield.py VALUE
    python tools/v8bitfield.py -c VALUE
    python tools/v8bitfield.py --layout v0.10 VALUE
    python tools/v8bitfield.py --json VALUE

VALUE is a C-style integer literal: 0x prefix for hex, leading 0 for
octal, decimal otherwise. -c prints the layout before the decoded value.

Exit codes:
    0  decoded
    2  usage error (bad arguments or non-numeric VALUE)
"""

import argparse
import json
import re
import sys
from typing import List, Optional

from bitfield_decoder import (
    decode_word, describe_layout, format_decode, smi_untag,
)
from bitfield_schema import WORD_BITS
from property_details import DEFAULT_VERSION, get_layout, known_versions


_HEX_RE = re.compile(r'0[xX][0-9a-fA-F]+')
_OCT_RE = re.compile(r'0[0-7]*')
_DEC_RE = re.compile(r'[1-9][0-9]*')


def parse_word(text: str, word_bits: int = WORD_BITS) -> int:
    """
    Parse an unsigned integer literal with C base detection.

    Accepts 0x/0X hex, leading-0 octal and plain decimal. The whole string
    must be a literal and the value must fit in word_bits bits. An empty
    string reads as 0, as it does for strtoul().

    Raises:
        ValueError: on anything else.
    """
    if text == '':
        value = 0
    elif _HEX_RE.fullmatch(text):
        value = int(text[2:], 16)
    elif _OCT_RE.fullmatch(text):
        value = int(text, 8)
    elif _DEC_RE.fullmatch(text):
        value = int(text, 10)
    else:
        raise ValueError(f'non-numeric value: "{text}"')

    if value >> word_bits:
        raise ValueError(f'value out of range: "{text}"')
    return value


_NEGATIVE_RE = re.compile(r'-\d+$|-\d*\.\d+$')


def _c_follows_value(argv: List[str]) -> bool:
    """
    True when a -c flag (alone or in a short-option cluster such as -cc)
    comes after the VALUE argument. -c is a leading flag.
    """
    seen_value = False
    takes_argument = False
    options_done = False
    for token in argv:
        if takes_argument:
            takes_argument = False
            continue
        if options_done or token == '-' or not token.startswith('-') \
                or _NEGATIVE_RE.fullmatch(token):
            seen_value = True
        elif token == '--':
            options_done = True
        elif token.startswith('--'):
            # --layout VERSION, or an abbreviation of it, consumes the next token
            takes_argument = '=' not in token and '--layout'.startswith(token)
        elif 'c' in token[1:] and seen_value:
            return True
    return False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        usage='%(prog)s [-c] VALUE',
        description='Decode a V8 PropertyDetails word into its bitfields',
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument('-c', dest='describe', action='store_true',
                        help='Print the layout description before the value')
    output.add_argument('--json', action='store_true',
                        help='Print the decoded fields as JSON')
    parser.add_argument('--layout', default=DEFAULT_VERSION,
                        choices=known_versions(), metavar='VERSION',
                        help=f"Layout version ({', '.join(known_versions())}; "
                             f"default {DEFAULT_VERSION})")
    parser.add_argument('value', metavar='VALUE',
                        help='Word to decode (hex 0x.., octal 0.., or decimal)')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.describe and _c_follows_value(argv):
        parser.error('-c must precede VALUE')

    try:
        tagged = parse_word(args.value)
    except ValueError as e:
        parser.error(str(e))

    layout = get_layout(args.layout)

    # Interpret as a Smi before decoding fields.
    result = decode_word(layout, smi_untag(tagged))

    if args.json:
        data = {'word': tagged}
        data.update(result.to_dict())
        print(json.dumps(data, indent=2))
        return 0

    if args.describe:
        print('\n'.join(describe_layout(layout)))
    print('\n'.join(format_decode(result)))
    return 0


if __name__ == '__main__':
    sys.exit(main())
