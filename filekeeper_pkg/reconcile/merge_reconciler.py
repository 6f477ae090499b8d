#!/usr/bin/env python3
"""
Merge Reconciler

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

After a merge, re-creates the losing records' file links on the surviving
master. Links to documents the master already has are skipped. The "already
linked" lookup is read once, before any insert, and is not updated while new
links are built: two losers merged into the same master that share a
document both produce an insert, and the org's uniqueness rule rejects the
whole batch. Set dedupe_siblings to collapse those before the write.
"""
import logging
from typing import Dict, List, Set

from filekeeper_pkg.reconcile.models import FileLink
from filekeeper_pkg.utils.record_utils import group_records, to_18_char_id

logger = logging.getLogger(__name__)


class MergeReconciler:
    """
    Replays cached links of merged records onto their master records.

    Args:
        snapshot_cache: LinkSnapshotCache populated before the delete
        link_store: Object with fetch_links() and insert_links()
        dedupe_siblings: Drop repeated (master, document) pairs within one pass
    """

    def __init__(self, snapshot_cache, link_store, dedupe_siblings: bool = False):
        self.snapshot_cache = snapshot_cache
        self.link_store = link_store
        self.dedupe_siblings = dedupe_siblings

    def reconcile(self, deleted_records) -> List[FileLink]:
        """
        Re-link files of merged records to their masters.

        Args:
            deleted_records: DeletedRecord objects from the delete

        Returns:
            list: FileLink objects submitted for insert (empty when nothing was written)
        """
        merged = [record for record in deleted_records if record.is_merged]
        if not merged:
            return []

        master_ids = {to_18_char_id(record.master_record_id) for record in merged}
        already_linked = self._linked_documents(master_ids)

        new_links = []
        for record in merged:
            master_id = to_18_char_id(record.master_record_id)
            linked = already_linked.get(master_id, set())
            for link in self.snapshot_cache.links_for(record.record_id):
                if link.content_document_id in linked:
                    logger.debug(
                        "Skipping %s: already linked to master %s",
                        link.content_document_id, master_id
                    )
                    continue
                new_links.append(link.relinked_to(master_id))

        if self.dedupe_siblings:
            new_links = _drop_repeated_pairs(new_links)

        if not new_links:
            logger.info("Merged %d record(s), no file links to move", len(merged))
            return []

        self.link_store.insert_links(new_links)
        logger.info(
            "Moved %d file link(s) from %d merged record(s) onto %d master(s)",
            len(new_links), len(merged), len(master_ids)
        )
        return new_links

    def _linked_documents(self, master_ids) -> Dict[str, Set[str]]:
        """Build {master Id: {ContentDocumentId, ...}} from one bulk read."""
        links = self.link_store.fetch_links(master_ids)
        grouped = group_records(links, lambda link: to_18_char_id(link.linked_entity_id))
        return {
            master_id: {link.content_document_id for link in master_links}
            for master_id, master_links in grouped.items()
        }


def _drop_repeated_pairs(links):
    seen = set()
    unique = []
    for link in links:
        if link.key in seen:
            logger.debug("Dropping repeated link %s -> %s", link.content_document_id, link.linked_entity_id)
            continue
        seen.add(link.key)
        unique.append(link)
    return unique
