#!/usr/bin/env python3
"""
Merge File Keeper Errors

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

Failures surfaced by the capture and reconcile phases. None of these are
retried; they propagate to whoever owns the merge transaction.
"""


class MergeFileKeeperError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(MergeFileKeeperError):
    """config.json is unreadable or holds a value of the wrong type."""


class UpstreamReadFailure(MergeFileKeeperError):
    """A bulk read of ContentDocumentLink rows failed."""


class UpstreamWriteFailure(MergeFileKeeperError):
    """
    The bulk insert of reconciled links was rejected.

    Args:
        message: Summary of the failure
        links: FileLink objects that are not in the org
        errors: Error messages reported by the org, one per rejected row when available
        committed: FileLink objects that were inserted and could not be rolled back
    """

    def __init__(self, message, links=None, errors=None, committed=None):
        super().__init__(message)
        self.links = list(links or [])
        self.errors = list(errors or [])
        self.committed = list(committed or [])
