#!/usr/bin/env python3
"""
Merge Context

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

One MergeContext per merge event. It owns the snapshot taken in the
before-delete phase and hands it to the reconciler in the after-delete
phase, so no state outlives the event.
"""
import logging

from filekeeper_pkg.reconcile.merge_reconciler import MergeReconciler
from filekeeper_pkg.reconcile.models import DeletedRecord, deleted_record_from_row
from filekeeper_pkg.reconcile.snapshot_cache import LinkSnapshotCache

logger = logging.getLogger(__name__)


class MergeContext:
    """
    Before/after delete handling for one merge event.

    Args:
        link_store: FileLink store (fetch_links / insert_links)
        dedupe_siblings: Passed through to MergeReconciler
    """

    def __init__(self, link_store, dedupe_siblings=False):
        self.snapshot_cache = LinkSnapshotCache(link_store)
        self.reconciler = MergeReconciler(self.snapshot_cache, link_store, dedupe_siblings)

    def before_delete(self, records):
        """Snapshot the file links of records about to be deleted."""
        self.snapshot_cache.capture({_record_id(record) for record in records})

    def after_delete(self, records):
        """
        Move cached file links of merged records onto their masters.

        Args:
            records: DeletedRecord objects or raw rows carrying Id and MasterRecordId

        Returns:
            list: FileLink objects that were inserted
        """
        deleted = [_as_deleted_record(record) for record in records]
        return self.reconciler.reconcile(deleted)

    def handle(self, is_before, is_after, is_delete, records):
        """
        Dispatch a trigger invocation to the matching phase.

        Only delete operations do anything; every other combination returns None.
        """
        if not is_delete:
            return None
        if is_before:
            self.before_delete(records)
            return None
        if is_after:
            return self.after_delete(records)
        return None


def _record_id(record):
    if isinstance(record, DeletedRecord):
        return record.record_id
    if isinstance(record, dict):
        return record['Id']
    return record


def _as_deleted_record(record):
    if isinstance(record, DeletedRecord):
        return record
    deleted = deleted_record_from_row(record)
    if record.get('MasterRecordId') and not deleted.is_merged:
        logger.warning(
            "Ignoring malformed MasterRecordId %r on %s, treating as a plain delete",
            record.get('MasterRecordId'), deleted.record_id
        )
    return deleted
