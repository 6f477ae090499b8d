#!/usr/bin/env python3
"""
ContentDocumentLink Store

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

Bulk read and bulk insert of ContentDocumentLink rows through the Salesforce
CLI. Transport errors are translated into UpstreamReadFailure and
UpstreamWriteFailure and never swallowed.
"""
import logging
from typing import Iterable, List

from filekeeper_pkg.errors import UpstreamReadFailure, UpstreamWriteFailure
from filekeeper_pkg.reconcile.models import LINK_FIELDS, LINK_SOBJECT, FileLink
from filekeeper_pkg.utils.record_utils import MAX_IDS_PER_QUERY, chunked, soql_id_list
from filekeeper_pkg.utils.salesforce_cli import TREE_IMPORT_LIMIT, SalesforceCLIError

logger = logging.getLogger(__name__)


class ContentDocumentLinkStore:
    """
    FileLink store backed by an org.

    Args:
        sf_cli: SalesforceCLI instance for the org holding the records
    """

    def __init__(self, sf_cli):
        self.sf_cli = sf_cli

    def fetch_links(self, entity_ids: Iterable[str]) -> List[FileLink]:
        """
        Read every link whose LinkedEntityId is in entity_ids.

        Args:
            entity_ids: Record Ids to look up

        Returns:
            list: FileLink objects in the order the org returned them
        """
        ids = sorted(set(entity_ids))
        if not ids:
            return []

        links = []
        for id_chunk in chunked(ids, MAX_IDS_PER_QUERY):
            query = (
                f"SELECT {', '.join(LINK_FIELDS)} FROM {LINK_SOBJECT} "
                f"WHERE LinkedEntityId IN {soql_id_list(id_chunk)}"
            )
            try:
                records = self.sf_cli.query_records(query)
            except SalesforceCLIError as e:
                raise UpstreamReadFailure(f"Could not read {LINK_SOBJECT} rows: {e}") from e
            links.extend(FileLink.from_record(record) for record in records)

        logger.debug("Read %d link(s) for %d record(s)", len(links), len(ids))
        return links

    def insert_links(self, links: List[FileLink]) -> List[str]:
        """
        Insert links all-or-nothing.

        Each request of TREE_IMPORT_LIMIT rows is atomic in the org. When a
        later request is rejected, the rows committed by earlier requests are
        deleted again so the batch fails as a whole.

        Args:
            links: FileLink objects without Id

        Returns:
            list: Ids of the created links
        """
        links = list(links)
        created_ids = []
        for start in range(0, len(links), TREE_IMPORT_LIMIT):
            link_chunk = links[start:start + TREE_IMPORT_LIMIT]
            try:
                created_ids.extend(
                    self.sf_cli.import_tree(LINK_SOBJECT, [link.to_insert_fields() for link in link_chunk])
                )
            except SalesforceCLIError as e:
                committed = self._roll_back(links[:start], created_ids)
                raise UpstreamWriteFailure(
                    f"Insert of {len(link_chunk)} {LINK_SOBJECT} row(s) was rejected: {e}",
                    links=links[len(committed):],
                    errors=e.errors,
                    committed=committed,
                ) from e

        logger.info("Inserted %d %s row(s)", len(created_ids), LINK_SOBJECT)
        return created_ids

    def _roll_back(self, committed_links, created_ids):
        """Delete rows from earlier requests; return the links still committed."""
        if not created_ids:
            return []
        try:
            self.sf_cli.delete_records(created_ids)
        except SalesforceCLIError as e:
            logger.error(
                "Could not roll back %d inserted %s row(s): %s",
                len(created_ids), LINK_SOBJECT, e
            )
            return list(committed_links)
        logger.warning("Rolled back %d inserted %s row(s)", len(created_ids), LINK_SOBJECT)
        return []


class DryRunLinkStore:
    """
    Reads through to a real store but only records inserts.

    Args:
        link_store: Store used for reads
    """

    def __init__(self, link_store):
        self.link_store = link_store
        self.pending = []

    def fetch_links(self, entity_ids):
        return self.link_store.fetch_links(entity_ids)

    def insert_links(self, links):
        self.pending.extend(links)
        logger.info("[DRY RUN] Would insert %d %s row(s)", len(links), LINK_SOBJECT)
        return []
