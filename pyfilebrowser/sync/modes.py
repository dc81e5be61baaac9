"""Sync direction definitions."""

from enum import Enum


class SyncDirection(str, Enum):
    """Which side of a sync is the source of truth."""

    TO_REMOTE = "toRemote"
    """Local is authoritative; the remote tree is made to mirror it"""

    FROM_REMOTE = "fromRemote"
    """Remote is authoritative; the local tree is made to mirror it"""
