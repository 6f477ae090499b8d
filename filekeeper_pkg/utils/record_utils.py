#!/usr/bin/env python3
"""
Record Utilities

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License
"""
import re
from collections import defaultdict

_SALESFORCE_ID = re.compile(r'^[a-zA-Z0-9]{15}(?:[a-zA-Z0-9]{3})?$')
_ID_SUFFIX_CHARS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ012345'

# Keeps a single SOQL statement well under the 100k character limit
MAX_IDS_PER_QUERY = 500


def is_salesforce_id(value):
    """
    Check that a value looks like a 15 or 18 character Salesforce record Id.

    Args:
        value: Anything read from a record field

    Returns:
        bool: True for a well-formed Id string
    """
    return isinstance(value, str) and bool(_SALESFORCE_ID.match(value))


def to_18_char_id(record_id):
    """
    Expand a 15 character Id to the 18 character form the API returns.

    The suffix encodes, per block of five characters, which ones are
    uppercase. Anything that is not a 15 character Id is returned unchanged.
    """
    if not is_salesforce_id(record_id) or len(record_id) != 15:
        return record_id
    suffix = ''
    for start in range(0, 15, 5):
        flags = 0
        for bit, char in enumerate(record_id[start:start + 5]):
            if 'A' <= char <= 'Z':
                flags |= 1 << bit
        suffix += _ID_SUFFIX_CHARS[flags]
    return record_id + suffix


def group_records(records, key):
    """
    Group records into {key(record): [records...]} keeping read order.

    Args:
        records: Iterable of records
        key: Callable returning the grouping key for a record

    Returns:
        dict: Key to list of records
    """
    grouped = defaultdict(list)
    for record in records:
        grouped[key(record)].append(record)
    return dict(grouped)


def chunked(items, size):
    """Yield successive slices of at most size items."""
    items = list(items)
    for start in range(0, len(items), size):
        yield items[start:start + size]


def soql_id_list(record_ids):
    """
    Format Ids for a SOQL IN clause: ('id1','id2').

    Values are escaped for single quotes so a stray value cannot break the query.
    """
    escaped = [str(record_id).replace("\\", "\\\\").replace("'", "\\'") for record_id in record_ids]
    return "('" + "','".join(escaped) + "')"
