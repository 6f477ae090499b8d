#!/usr/bin/env python3
"""
Link Snapshot Cache

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

Holds the file links a record had just before it was deleted. One instance
belongs to one merge event; nothing here is module level.
"""
import logging

from filekeeper_pkg.utils.record_utils import group_records, to_18_char_id

logger = logging.getLogger(__name__)


class LinkSnapshotCache:
    """
    Pre-delete snapshot of ContentDocumentLinks keyed by record Id.

    Args:
        link_store: Object with fetch_links(entity_ids) -> list of FileLink
    """

    def __init__(self, link_store):
        self.link_store = link_store
        self._links_by_record = {}

    def capture(self, record_ids):
        """
        Snapshot the links of records that are about to be deleted.

        An empty set is a no-op. Capturing a record again replaces its
        earlier snapshot. Read failures propagate.

        Args:
            record_ids: Ids of the records being deleted
        """
        record_ids = {to_18_char_id(record_id) for record_id in record_ids}
        if not record_ids:
            return

        links = self.link_store.fetch_links(record_ids)
        grouped = group_records(links, lambda link: to_18_char_id(link.linked_entity_id))
        for record_id in record_ids:
            self._links_by_record[record_id] = grouped.get(record_id, [])

        logger.info("Captured %d file link(s) across %d record(s)", len(links), len(record_ids))

    def links_for(self, record_id):
        """Return the captured links for a record, or an empty list."""
        return list(self._links_by_record.get(to_18_char_id(record_id), []))

    def captured_ids(self):
        return set(self._links_by_record)

    def clear(self):
        self._links_by_record.clear()
