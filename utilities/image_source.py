#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Image payload sources.

Loads the raw artwork bytes handed to the script engine: a local image
file, an image URL, or the embedded artwork of an audio file.
"""

import os
from typing import Optional

import requests
from mutagen.flac import FLAC
from mutagen.id3 import ID3
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4

AUDIO_EXTENSIONS = {'.mp3', '.m4a', '.mp4', '.flac'}


def download_image(url: str, user_agent: str = "missing-art/1.0", timeout: float = 30) -> Optional[bytes]:
    """Download image from URL. Returns bytes, or None on a non-200 response."""
    headers = {
        'User-Agent': user_agent
    }
    response = requests.get(url, headers=headers, timeout=timeout)
    if response.status_code == 200 and response.content:
        return response.content
    print(f"[Images] Download failed ({response.status_code}): {url}")
    return None


def extract_cover_from_file(filepath: str) -> Optional[bytes]:
    """Extract embedded cover art from an audio file. Returns bytes or None."""
    ext = os.path.splitext(filepath)[1].lower()

    if ext == '.mp3':
        audio = MP3(filepath, ID3=ID3)
        if audio.tags:
            for key in audio.tags.keys():
                if key.startswith('APIC'):
                    return audio.tags[key].data
    elif ext in ['.m4a', '.mp4']:
        audio = MP4(filepath)
        if audio.tags and 'covr' in audio.tags and audio.tags['covr']:
            return bytes(audio.tags['covr'][0])
    elif ext == '.flac':
        audio = FLAC(filepath)
        if audio.pictures:
            return audio.pictures[0].data
    return None


def read_image_file(path: str) -> bytes:
    """Read an image file from disk"""
    with open(path, 'rb') as f:
        data = f.read()
    if not data:
        raise ValueError(f"Image file is empty: {path}")
    return data


def load_image(source: str, config=None) -> bytes:
    """
    Load image bytes from a URL, an audio file's artwork, or an image file.

    Args:
        source: http(s) URL or local path
        config: Optional ConfigManager for download settings

    Returns:
        Raw image bytes

    Raises:
        ValueError: Nothing could be loaded from source
    """
    if source.startswith('http://') or source.startswith('https://'):
        user_agent = config.get('images.user_agent', 'missing-art/1.0') if config else 'missing-art/1.0'
        timeout = config.get('images.timeout', 30) if config else 30
        data = download_image(source, user_agent=user_agent, timeout=timeout)
        if data is None:
            raise ValueError(f"Could not download image: {source}")
        return data

    if os.path.splitext(source)[1].lower() in AUDIO_EXTENSIONS:
        data = extract_cover_from_file(source)
        if data is None:
            raise ValueError(f"No embedded artwork in: {source}")
        return data

    return read_image_file(source)
