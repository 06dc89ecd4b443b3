# Processing Agents
# Agents for finding albums with missing artwork and fixing them

from .base import BaseAgent
from .scanner import ScannerAgent, AlbumScan
from .fixer import FixerAgent

__all__ = [
    'BaseAgent',
    'ScannerAgent',
    'AlbumScan',
    'FixerAgent'
]
