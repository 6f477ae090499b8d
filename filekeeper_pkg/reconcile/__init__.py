"""Capture file links before a merge and move them onto the master afterwards."""

from .models import FileLink, DeletedRecord, deleted_record_from_row
from .link_store import ContentDocumentLinkStore, DryRunLinkStore
from .snapshot_cache import LinkSnapshotCache
from .merge_reconciler import MergeReconciler
from .merge_context import MergeContext

__all__ = [
    'FileLink',
    'DeletedRecord',
    'deleted_record_from_row',
    'ContentDocumentLinkStore',
    'DryRunLinkStore',
    'LinkSnapshotCache',
    'MergeReconciler',
    'MergeContext'
]
