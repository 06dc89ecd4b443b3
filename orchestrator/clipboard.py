#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Clipboard port.

Generated programs and artwork images are handed to the clipboard through
this port; nothing else in the project touches system clipboard state.
"""

import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

from scripting.sanitizer import escape_literal


def image_class(data: bytes) -> str:
    """AppleScript clipboard class for an image payload"""
    if data.startswith(b'\x89PNG'):
        return 'PNGf'
    if data.startswith(b'\xff\xd8'):
        return 'JPEG'
    if data[:4] in (b'II*\x00', b'MM\x00*'):
        return 'TIFF'
    raise ValueError("Unrecognized image format (expected PNG, JPEG or TIFF)")


class ClipboardPort(ABC):
    """Write text and/or an image to a clipboard"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def write(self, text: Optional[str] = None, image: Optional[bytes] = None) -> None:
        """Replace clipboard contents. The image is placed first, then the text."""
        pass

    def log(self, message: str) -> None:
        print(f"[{self.name}] {message}")


class MemoryClipboard(ClipboardPort):
    """Clipboard kept in memory (tests, dry runs)"""

    def __init__(self):
        self.text: Optional[str] = None
        self.image: Optional[bytes] = None
        self.writes: List[Tuple[Optional[str], Optional[bytes]]] = []

    @property
    def name(self) -> str:
        return "MemoryClipboard"

    def write(self, text: Optional[str] = None, image: Optional[bytes] = None) -> None:
        self.text = text or None
        self.image = image
        self.writes.append((self.text, image))


class PbcopyClipboard(ClipboardPort):
    """
    Clipboard through pbcopy (text) and osascript (image).
    Only one of the two can be held at a time; text wins.
    """

    def __init__(self, pbcopy_path: str = "pbcopy", osascript_path: str = "osascript"):
        self.pbcopy_path = pbcopy_path
        self.osascript_path = osascript_path

    @property
    def name(self) -> str:
        return "Clipboard"

    def write(self, text: Optional[str] = None, image: Optional[bytes] = None) -> None:
        if text:
            if image:
                self.log("Warning: pbcopy holds text only, image not copied (use the appkit clipboard)")
            subprocess.run([self.pbcopy_path], input=text, text=True, encoding='utf-8', check=True)
            return

        if image:
            self._write_image(image)

    def _write_image(self, image: bytes) -> None:
        clipboard_class = image_class(image)
        with tempfile.TemporaryDirectory(prefix="missing-art-") as workdir:
            image_path = Path(workdir) / "artwork"
            image_path.write_bytes(image)
            script = (
                f'set the clipboard to (read (POSIX file "{escape_literal(str(image_path))}") '
                f'as «class {clipboard_class}»)'
            )
            subprocess.run(
                [self.osascript_path, '-'],
                input=script,
                text=True,
                encoding='utf-8',
                capture_output=True,
                check=True
            )


class PasteboardClipboard(ClipboardPort):
    """General pasteboard through AppKit (PyObjC); holds image and text together"""

    def __init__(self):
        try:
            import AppKit
        except ImportError as e:
            raise ImportError(
                "The appkit clipboard needs PyObjC: pip install 'missing-art[macos]'"
            ) from e
        self._appkit = AppKit

    @property
    def name(self) -> str:
        return "Pasteboard"

    def write(self, text: Optional[str] = None, image: Optional[bytes] = None) -> None:
        pasteboard = self._appkit.NSPasteboard.generalPasteboard()
        pasteboard.clearContents()

        if image:
            data = self._appkit.NSData.dataWithBytes_length_(image, len(image))
            ns_image = self._appkit.NSImage.alloc().initWithData_(data)
            if ns_image is None:
                raise ValueError("Image payload could not be decoded")
            pasteboard.writeObjects_([ns_image])
        if text:
            pasteboard.setString_forType_(text, self._appkit.NSPasteboardTypeString)


def create_clipboard(config) -> ClipboardPort:
    """Create the clipboard named by 'clipboard.backend' in config"""
    backend = config.get('clipboard.backend', 'pbcopy')

    if backend == 'pbcopy':
        return PbcopyClipboard()
    if backend == 'appkit':
        return PasteboardClipboard()
    if backend == 'memory':
        return MemoryClipboard()

    raise ValueError(f"Unknown clipboard backend: {backend}")
