#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Scanner Agent - Finds albums with missing artwork.

Responsibilities:
- Traverse directory structure
- Read artist/album/compilation tags from audio files (MP3, M4A, FLAC)
- Detect embedded cover art per track
- Build records: no artwork on any track -> FULL fix,
  artwork on some tracks -> PARTIAL fix
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import mutagen

from scripting.record import ArtistAlbum, CompilationAlbum, FixMode, MissingArtwork
from utilities.image_source import extract_cover_from_file

from .base import BaseAgent


@dataclass
class TrackData:
    """Scanned track information"""
    filepath: str
    album: Optional[str] = None
    artist: Optional[str] = None
    album_artist: Optional[str] = None
    compilation: bool = False
    has_artwork: bool = False


@dataclass
class AlbumScan:
    """Tracks of one album and their artwork state"""
    album: str
    artist: str
    compilation: bool
    tracks: List[TrackData] = field(default_factory=list)

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    @property
    def artwork_count(self) -> int:
        return sum(1 for t in self.tracks if t.has_artwork)

    @property
    def mode(self) -> Optional[FixMode]:
        """FULL, PARTIAL, or None when every track has artwork"""
        if self.artwork_count == 0:
            return FixMode.FULL
        if self.artwork_count < self.track_count:
            return FixMode.PARTIAL
        return None

    @property
    def record(self) -> MissingArtwork:
        if self.compilation or not self.artist:
            return CompilationAlbum(self.album)
        return ArtistAlbum(self.artist, self.album)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.record.to_dict(),
            "mode": self.mode.value if self.mode else None,
            "track_count": self.track_count,
            "artwork_count": self.artwork_count
        }


class ScannerAgent(BaseAgent):
    """
    Scanner agent for albums missing artwork.

    Groups tracks by (album artist, album); compilations group by album only.
    """

    AUDIO_EXTENSIONS = {'.mp3', '.flac', '.m4a', '.mp4'}
    VARIOUS_ARTISTS = {'various artists', 'various', 'va'}
    TRUE_VALUES = {'1', 'true', 'yes'}

    @property
    def name(self) -> str:
        return "Scanner"

    def process(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Scan a folder tree.

        Args:
            item: Dictionary with 'path' key pointing to a folder

        Returns:
            Scan results with albums missing artwork
        """
        path = item.get('path')
        if not path:
            return {"status": "error", "error": "No path provided"}
        if not Path(path).is_dir():
            return {"status": "error", "path": path, "error": f"Not a directory: {path}"}

        albums = self.scan(path)
        missing = [a for a in albums if a.mode is not None]

        return {
            "status": "success",
            "path": path,
            "album_count": len(albums),
            "missing_count": len(missing),
            "albums": missing
        }

    def scan(self, root: str) -> List[AlbumScan]:
        """Scan root recursively and return every album found, in sorted order"""
        albums: Dict[Tuple[str, str], AlbumScan] = {}

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                if Path(filename).suffix.lower() not in self.AUDIO_EXTENSIONS:
                    continue

                track = self.read_track(os.path.join(dirpath, filename))
                if track is None or not track.album:
                    continue

                compilation = track.compilation or (track.album_artist or '').lower() in self.VARIOUS_ARTISTS
                artist = '' if compilation else (track.album_artist or track.artist or '')
                key = (artist, track.album)

                if key not in albums:
                    albums[key] = AlbumScan(album=track.album, artist=artist, compilation=compilation)
                albums[key].tracks.append(track)

        self.log(f"Found {len(albums)} album(s) in {root}")
        return [albums[k] for k in sorted(albums)]

    def read_track(self, filepath: str) -> Optional[TrackData]:
        """Read tags and artwork presence from one audio file"""
        try:
            audio = mutagen.File(filepath, easy=True)
        except mutagen.MutagenError as e:
            self.log_error(f"Cannot read {filepath}: {e}")
            return None
        if audio is None:
            return None

        tags = audio.tags or {}
        compilation = (self._first(tags, 'compilation') or '').strip().lower() in self.TRUE_VALUES

        try:
            has_artwork = extract_cover_from_file(filepath) is not None
        except mutagen.MutagenError as e:
            self.log_error(f"Cannot read artwork from {filepath}: {e}")
            has_artwork = False

        return TrackData(
            filepath=filepath,
            album=self._first(tags, 'album'),
            artist=self._first(tags, 'artist'),
            album_artist=self._first(tags, 'albumartist'),
            compilation=compilation,
            has_artwork=has_artwork
        )

    def _first(self, tags, key: str) -> Optional[str]:
        """First value of an easy tag, or None"""
        try:
            values = tags[key]
        except (KeyError, ValueError):
            return None
        if isinstance(values, list):
            values = values[0] if values else None
        if values is None:
            return None
        value = str(values).strip()
        return value or None

    def records(self, root: str) -> List[Tuple[MissingArtwork, FixMode]]:
        """(record, mode) pairs for albums under root that need artwork"""
        return [(a.record, a.mode) for a in self.scan(root) if a.mode is not None]

