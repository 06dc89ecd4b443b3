#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Record model for albums with missing artwork.

A record names one album in the Music library whose tracks have no artwork
(or only some of them do). Normal albums are identified by artist and
album title; compilations by album title only.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .sanitizer import FILLER, HANDLER_PREFIX, escape_literal, to_handler_name


class FixMode(Enum):
    """Where the replacement image comes from"""
    FULL = "full"          # No track has artwork; image from clipboard or payload
    PARTIAL = "partial"    # Some tracks have artwork; copy it to the rest


class MissingArtwork:
    """
    Base class for the two record variants.

    Records are immutable. Equality and hashing use (kind, artist, album) so
    records can key the per-record outcome map.
    """

    kind: str = ""
    artist: str = ""
    album: str = ""

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.kind, self.artist, self.album)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MissingArtwork):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    @property
    def search_representation(self) -> str:
        """Unescaped query passed to the library search"""
        if self.artist:
            return f"{self.artist} {self.album}"
        return self.album

    @property
    def description(self) -> str:
        """Human-readable form for messages"""
        if self.artist:
            return f"{self.artist} — {self.album}"
        return self.album

    @property
    def escaped_search_representation(self) -> str:
        return escape_literal(self.search_representation)

    def verification_clause(self, track_var: str = "trk") -> str:
        """
        Render the match predicate as an AppleScript boolean expression.

        The album must always match; the artist is compared only when
        the record carries a non-empty artist.
        """
        clause = f'album of {track_var} is equal to "{escape_literal(self.album)}"'
        if self.artist:
            clause += f' and artist of {track_var} is equal to "{escape_literal(self.artist)}"'
        return clause

    def handler_name_with(self, prefix: str = HANDLER_PREFIX, filler: str = FILLER) -> str:
        return to_handler_name(self.search_representation, prefix=prefix, filler=filler)

    @property
    def handler_name(self) -> str:
        return self.handler_name_with()

    @property
    def digest(self) -> str:
        """Short content hash of (kind, artist, album)"""
        raw = "\x1f".join(self.key).encode('utf-8')
        return hashlib.md5(raw).hexdigest()[:8]

    def unique_handler_name_with(self, prefix: str = HANDLER_PREFIX, filler: str = FILLER) -> str:
        return f"{self.handler_name_with(prefix, filler)}{filler}{self.digest}"

    @property
    def unique_handler_name(self) -> str:
        return self.unique_handler_name_with()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "artist": self.artist,
            "album": self.album
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'MissingArtwork':
        """
        Build a record from a mapping (records file or scan result).

        A missing/empty artist, or 'compilation: true', gives a CompilationAlbum.
        """
        album = data.get('album')
        # YAML reads titles like 1999 or 21 as numbers
        if album is None or isinstance(album, (dict, list)) or not str(album).strip():
            raise ValueError(f"Record needs an album title: {data!r}")
        album = str(album)

        artist = data.get('artist') or ""
        if data.get('compilation') or data.get('kind') == CompilationAlbum.kind or not artist:
            return CompilationAlbum(album)
        return ArtistAlbum(str(artist), album)

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True, eq=False)
class ArtistAlbum(MissingArtwork):
    """Album identified by artist and title"""
    artist: str
    album: str
    kind = "artist_album"


@dataclass(frozen=True, eq=False)
class CompilationAlbum(MissingArtwork):
    """Various-artists album identified by title only"""
    album: str
    kind = "compilation"
