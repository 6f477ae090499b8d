#!/usr/bin/env python3
"""
File Link Models

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from filekeeper_pkg.utils.record_utils import is_salesforce_id

LINK_SOBJECT = 'ContentDocumentLink'
LINK_FIELDS = ['Id', 'LinkedEntityId', 'ContentDocumentId', 'ShareType', 'Visibility', 'IsDeleted']


@dataclass(frozen=True)
class FileLink:
    """A ContentDocumentLink: one document shared with one record."""

    linked_entity_id: str
    content_document_id: str
    share_type: str
    visibility: str
    id: Optional[str] = None
    is_deleted: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'FileLink':
        return cls(
            linked_entity_id=record['LinkedEntityId'],
            content_document_id=record['ContentDocumentId'],
            share_type=record.get('ShareType'),
            visibility=record.get('Visibility'),
            id=record.get('Id'),
            is_deleted=bool(record.get('IsDeleted', False)),
        )

    def relinked_to(self, master_id: str) -> 'FileLink':
        """Copy this link onto another record, keeping the sharing policy."""
        return FileLink(
            linked_entity_id=master_id,
            content_document_id=self.content_document_id,
            share_type=self.share_type,
            visibility=self.visibility,
        )

    def to_insert_fields(self) -> Dict[str, Any]:
        return {
            'LinkedEntityId': self.linked_entity_id,
            'ContentDocumentId': self.content_document_id,
            'ShareType': self.share_type,
            'Visibility': self.visibility,
        }

    @property
    def key(self):
        return (self.linked_entity_id, self.content_document_id)


@dataclass(frozen=True)
class DeletedRecord:
    """A record removed by a delete; master_record_id is set only when the delete was a merge."""

    record_id: str
    master_record_id: Optional[str] = None

    @property
    def is_merged(self) -> bool:
        return is_salesforce_id(self.master_record_id)


def deleted_record_from_row(row: Dict[str, Any]) -> DeletedRecord:
    """
    Translate a raw platform row into a DeletedRecord.

    A MasterRecordId that is missing, blank or not a well-formed Id is dropped,
    so the record is treated as an ordinary delete.

    Args:
        row: Record dictionary with 'Id' and optionally 'MasterRecordId'

    Returns:
        DeletedRecord
    """
    master_id = row.get('MasterRecordId')
    if not is_salesforce_id(master_id):
        master_id = None
    return DeletedRecord(record_id=row['Id'], master_record_id=master_id)
