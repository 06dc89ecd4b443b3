# Missing Artwork Orchestration
# Configuration, outcome tracking, clipboard and coordination

from .config import ConfigManager
from .errors import FixError, LoadScriptError
from .outcomes import OutcomeTracker, FixOutcome, FixStatus
from .clipboard import ClipboardPort, MemoryClipboard, PbcopyClipboard, PasteboardClipboard
from .orchestrator import ArtworkOrchestrator, create_orchestrator

__all__ = [
    'ConfigManager',
    'FixError',
    'LoadScriptError',
    'OutcomeTracker',
    'FixOutcome',
    'FixStatus',
    'ClipboardPort',
    'MemoryClipboard',
    'PbcopyClipboard',
    'PasteboardClipboard',
    'ArtworkOrchestrator',
    'create_orchestrator'
]
