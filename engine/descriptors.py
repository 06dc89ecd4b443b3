#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Parameter marshaling into Apple event descriptor form.

Handler parameters are a closed set of kinds: Text, Flag and ImagePayload.
Plain str, bool and bytes values are accepted and wrapped; anything else
raises UnsupportedParameterKind before the runtime is contacted.
"""

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List

from .errors import UnsupportedParameterKind

TYPE_TEXT = "utxt"
TYPE_BOOLEAN = "bool"
# Script Editor shows image data as class 'tdta'; the descriptor Music
# hands back for artwork data has that type code.
TYPE_IMAGE = "tdta"


def fourcc(code: str) -> int:
    """Four-character code as the big-endian integer Apple events use"""
    raw = code.encode('mac_roman')
    if len(raw) != 4:
        raise ValueError(f"Four-character code expected: {code!r}")
    return struct.unpack('>I', raw)[0]


@dataclass(frozen=True)
class Descriptor:
    """Runtime-neutral descriptor: a type code and a Python value"""
    type_code: str
    value: Any


class Param(ABC):
    """A value convertible to a descriptor"""

    @abstractmethod
    def to_descriptor(self) -> Descriptor:
        pass


@dataclass(frozen=True)
class Text(Param):
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise UnsupportedParameterKind(type(self.value).__name__)

    def to_descriptor(self) -> Descriptor:
        return Descriptor(TYPE_TEXT, self.value)


@dataclass(frozen=True)
class Flag(Param):
    value: bool

    def __post_init__(self):
        if not isinstance(self.value, bool):
            raise UnsupportedParameterKind(type(self.value).__name__)

    def to_descriptor(self) -> Descriptor:
        return Descriptor(TYPE_BOOLEAN, self.value)


@dataclass(frozen=True)
class ImagePayload(Param):
    """Raw image bytes (PNG, JPEG or TIFF) passed as tagged image data"""
    data: bytes

    def __post_init__(self):
        if not isinstance(self.data, bytes):
            raise UnsupportedParameterKind(type(self.data).__name__)
        if not self.data:
            raise ValueError("Image payload is empty")

    def to_descriptor(self) -> Descriptor:
        return Descriptor(TYPE_IMAGE, self.data)

    def __repr__(self) -> str:
        return f"ImagePayload({len(self.data)} bytes)"


def to_param(value: Any) -> Param:
    """Wrap a plain value in its Param kind"""
    if isinstance(value, Param):
        return value
    # bool before anything numeric-looking; int itself is not supported
    if isinstance(value, bool):
        return Flag(value)
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ImagePayload(bytes(value))
    raise UnsupportedParameterKind(type(value).__name__)


def marshal(parameters: Iterable[Any]) -> List[Descriptor]:
    """Convert positional parameters to descriptors, preserving order"""
    return [to_param(p).to_descriptor() for p in parameters]
