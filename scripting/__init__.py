# AppleScript Generation
# Sanitizer, record model, template library and program synthesizer

from .sanitizer import escape_literal, to_handler_name, is_identifier
from .record import MissingArtwork, ArtistAlbum, CompilationAlbum, FixMode
from .templates import TEMPLATE_VERSION, FIX_ALBUM_ARTWORK_DEFINITION, DriverFailure
from .synthesizer import build_program, build_invocation, ScriptInvocation

__all__ = [
    'escape_literal',
    'to_handler_name',
    'is_identifier',
    'MissingArtwork',
    'ArtistAlbum',
    'CompilationAlbum',
    'FixMode',
    'TEMPLATE_VERSION',
    'FIX_ALBUM_ARTWORK_DEFINITION',
    'DriverFailure',
    'build_program',
    'build_invocation',
    'ScriptInvocation'
]
