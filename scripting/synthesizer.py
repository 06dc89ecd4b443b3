#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Program synthesizer.

Composes a complete AppleScript program for a batch of records:

    template library
    one verification subroutine per record
    one driver invocation per record (optionally wrapped in try/on error)
    return true

Output is byte-identical for the same records, order and flags, so the
"copy as AppleScript" text is reproducible.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .record import FixMode, MissingArtwork
from .sanitizer import FILLER, HANDLER_PREFIX
from .templates import (
    APPLICATION,
    CLIPBOARD_IMAGE_HANDLER,
    DRIVER_HANDLER,
    FIX_ALBUM_ARTWORK_DEFINITION,
    FIX_ARTWORK_HANDLER,
    FIX_ARTWORK_WITH_IMAGE_HANDLER,
    LOG_PREFIX,
    PARTIAL_IMAGE_HANDLER,
)

INDENT = "  "


@dataclass(frozen=True)
class ScriptInvocation:
    """A named handler call against the compiled template library"""
    handler: str
    parameters: Tuple[Any, ...]


def _coerce_mode(mode: Union[FixMode, str]) -> FixMode:
    if isinstance(mode, FixMode):
        return mode
    return FixMode(str(mode).lower())


def unique_records(records: Iterable[MissingArtwork]) -> List[MissingArtwork]:
    """Drop repeated records, keeping first occurrence order"""
    seen = set()
    result = []
    for record in records:
        if not isinstance(record, MissingArtwork):
            raise ValueError(f"Not a record: {record!r}")
        if record in seen:
            continue
        seen.add(record)
        result.append(record)
    return result


def resolve_handler_names(
    records: List[MissingArtwork],
    prefix: str = HANDLER_PREFIX,
    filler: str = FILLER
) -> Dict[MissingArtwork, str]:
    """
    Assign a verification handler name to each record.

    AppleScript identifiers are case-insensitive, so names are compared
    lower-cased. Records whose names collide get the digest-suffixed form;
    a name still taken after that (a title that spells out another
    record's digest) gets a numeric suffix.
    """
    groups: Dict[str, List[MissingArtwork]] = defaultdict(list)
    for record in dict.fromkeys(records):
        groups[record.handler_name_with(prefix, filler).lower()].append(record)

    names: Dict[MissingArtwork, str] = {}
    taken = set()
    for record in records:
        if record in names:
            continue
        if len(groups[record.handler_name_with(prefix, filler).lower()]) > 1:
            name = record.unique_handler_name_with(prefix, filler)
        else:
            name = record.handler_name_with(prefix, filler)

        candidate = name
        counter = 2
        while candidate.lower() in taken:
            candidate = f"{name}{filler}{counter}"
            counter += 1

        taken.add(candidate.lower())
        names[record] = candidate
    return names


def verification_subroutine(record: MissingArtwork, handler_name: str) -> str:
    """Render the per-record verify handler"""
    return (
        f"on {handler_name}(trk)\n"
        f"{INDENT}tell application \"{APPLICATION}\"\n"
        f"{INDENT}{INDENT}return {record.verification_clause('trk')}\n"
        f"{INDENT}end tell\n"
        f"end {handler_name}\n"
    )


def driver_call(record: MissingArtwork, handler_name: str, mode: FixMode) -> str:
    """Render one fixAlbumArtwork(...) statement"""
    if mode is FixMode.PARTIAL:
        find_image = PARTIAL_IMAGE_HANDLER
    else:
        find_image = CLIPBOARD_IMAGE_HANDLER
    return f'{DRIVER_HANDLER}("{record.escaped_search_representation}", {handler_name}, {find_image})'


def guarded(statement: str) -> str:
    return (
        "try\n"
        f"{INDENT}{statement}\n"
        "on error errorString\n"
        f"{INDENT}log \"{LOG_PREFIX}\" & errorString\n"
        "end try\n"
    )


def build_program(
    records: Iterable[MissingArtwork],
    mode: Union[FixMode, str] = FixMode.FULL,
    guard_errors: bool = True,
    prefix: str = HANDLER_PREFIX,
    filler: str = FILLER
) -> str:
    """
    Build the full program text for a batch of records.

    Args:
        records: Records to fix, in invocation order
        mode: FULL takes the image from the clipboard, PARTIAL from a
            track of the same album that already has artwork
        guard_errors: Wrap each invocation in try/on error and log failures
            instead of aborting the remaining invocations
        prefix: Verification handler prefix
        filler: Replacement for non-alphanumeric characters in handler names

    Returns:
        AppleScript source text
    """
    mode = _coerce_mode(mode)
    batch = unique_records(records)
    names = resolve_handler_names(batch, prefix, filler)

    parts = [FIX_ALBUM_ARTWORK_DEFINITION, "\n"]

    for record in batch:
        parts.append(verification_subroutine(record, names[record]))

    for record in batch:
        statement = driver_call(record, names[record], mode)
        if guard_errors:
            parts.append(guarded(statement))
        else:
            parts.append(f"{statement}\n")

    parts.append("return true\n")
    return "".join(parts)


def build_invocation(
    record: MissingArtwork,
    mode: Union[FixMode, str] = FixMode.FULL,
    image: Optional[bytes] = None
) -> ScriptInvocation:
    """
    Build the handler call used by the script engine for one record.

    Parameters are raw (unescaped) values; the engine marshals them.
    A FULL fix with an image payload passes the image; without one the
    compiled library reads the clipboard.
    """
    mode = _coerce_mode(mode)
    base = (record.search_representation, record.album, record.artist)

    if mode is FixMode.PARTIAL:
        return ScriptInvocation(FIX_ARTWORK_HANDLER, base + (True,))
    if image is not None:
        return ScriptInvocation(FIX_ARTWORK_WITH_IMAGE_HANDLER, base + (image,))
    return ScriptInvocation(FIX_ARTWORK_HANDLER, base + (False,))
