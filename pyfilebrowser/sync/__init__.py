"""Sync engine for pyfilebrowser - one-way mirroring in either direction."""

from .comparator import FileComparator, SyncAction, SyncDecision
from .engine import SyncEngine
from .ignore import IgnoreFilter, compile_ignore_pattern
from .modes import SyncDirection
from .operations import SyncOperations
from .scanner import DirectoryScanner, LocalEntry, RemoteEntry
from .snapshot import ROOT, Snapshot

__all__ = [
    "SyncEngine",
    "SyncDirection",
    "SyncOperations",
    "DirectoryScanner",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "LocalEntry",
    "RemoteEntry",
    "Snapshot",
    "ROOT",
    "IgnoreFilter",
    "compile_ignore_pattern",
]
