#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Escaping and identifier helpers for generated AppleScript.

Free text (album titles, artist names) ends up in two places of a generated
program: inside double-quoted string literals, and inside handler names.
"""

import re
import unicodedata

HANDLER_PREFIX = "verify_track_"
FILLER = "_"

# Backslash must go first so the escapes added below are not doubled
LITERAL_ESCAPES = [
    ('\\', '\\\\'),
    ('"', '\\"'),
    ('\r', '\\r'),
    ('\n', '\\n'),
    ('\t', '\\t'),
]

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_NOT_ALNUM = re.compile(r'[^A-Za-z0-9]')


def escape_literal(s: str) -> str:
    """Escape a string for embedding inside a double-quoted AppleScript literal."""
    for raw, escaped in LITERAL_ESCAPES:
        s = s.replace(raw, escaped)
    return s


def strip_diacritics(s: str) -> str:
    """Remove combining marks after canonical decomposition (é -> e)."""
    decomposed = unicodedata.normalize('NFD', s)
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def to_handler_name(s: str, prefix: str = HANDLER_PREFIX, filler: str = FILLER) -> str:
    """
    Derive a valid AppleScript handler name from arbitrary text.

    Every character that is not an ASCII letter or digit becomes one filler
    character, so "Classics: 1" maps to "Classics__1".

    Args:
        s: Text to derive the name from (usually a search representation)
        prefix: Handler namespace prefix
        filler: Replacement for non-alphanumeric characters

    Returns:
        Handler name beginning with prefix
    """
    if not is_identifier(prefix + 'x'):
        raise ValueError(f"Invalid handler prefix: {prefix!r}")
    if len(filler) != 1 or not is_identifier('x' + filler):
        raise ValueError(f"Invalid filler character: {filler!r}")

    return prefix + _NOT_ALNUM.sub(filler, strip_diacritics(s))


def is_identifier(name: str) -> bool:
    """Check that name can be used as a plain AppleScript identifier"""
    return bool(_IDENTIFIER.match(name or ''))
