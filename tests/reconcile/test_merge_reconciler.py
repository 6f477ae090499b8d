from __future__ import annotations

import pytest

from filekeeper_pkg.errors import UpstreamReadFailure, UpstreamWriteFailure
from filekeeper_pkg.reconcile import DeletedRecord, LinkSnapshotCache, MergeReconciler
from tests.helpers.link_store import (
    DOC_A,
    DOC_B,
    DOC_C,
    LOSER_A,
    LOSER_B,
    MASTER_ID,
    OTHER_MASTER_ID,
    FakeLinkStore,
    make_link,
)


def _capture_and_delete(store: FakeLinkStore, record_ids: set[str]) -> LinkSnapshotCache:
    cache = LinkSnapshotCache(store)
    cache.capture(record_ids)
    # the platform drops links of deleted records
    store.links = [link for link in store.links if link.linked_entity_id not in record_ids]
    return cache


def _reset_counters(store: FakeLinkStore) -> None:
    store.fetch_calls.clear()
    store.insert_calls.clear()


def test_empty_batch_does_nothing(store: FakeLinkStore) -> None:
    reconciler = MergeReconciler(LinkSnapshotCache(store), store)

    assert reconciler.reconcile([]) == []
    assert store.fetch_calls == []
    assert store.insert_calls == []


def test_plain_deletes_do_not_touch_the_store() -> None:
    store = FakeLinkStore([make_link(LOSER_A, DOC_A)])
    cache = _capture_and_delete(store, {LOSER_A, LOSER_B})
    _reset_counters(store)

    result = MergeReconciler(cache, store).reconcile(
        [DeletedRecord(LOSER_A), DeletedRecord(LOSER_B, master_record_id="")]
    )

    assert result == []
    assert store.fetch_calls == []
    assert store.insert_calls == []


def test_links_move_to_master_with_their_sharing_policy() -> None:
    store = FakeLinkStore(
        [
            make_link(LOSER_A, DOC_A, share_type="C", visibility="AllUsers"),
            make_link(LOSER_A, DOC_B, share_type="V", visibility="InternalUsers"),
        ]
    )
    cache = _capture_and_delete(store, {LOSER_A})
    _reset_counters(store)

    result = MergeReconciler(cache, store).reconcile([DeletedRecord(LOSER_A, MASTER_ID)])

    moved = {(link.content_document_id, link.share_type, link.visibility) for link in store.links_on(MASTER_ID)}
    assert moved == {(DOC_A, "C", "AllUsers"), (DOC_B, "V", "InternalUsers")}
    assert len(result) == 2
    assert all(link.id is None for link in result)
    assert store.fetch_calls == [{MASTER_ID}]
    assert len(store.insert_calls) == 1


def test_documents_already_on_master_are_skipped() -> None:
    store = FakeLinkStore(
        [
            make_link(LOSER_A, DOC_A, share_type="C"),
            make_link(LOSER_A, DOC_B, share_type="V", visibility="InternalUsers"),
            make_link(MASTER_ID, DOC_A),
        ]
    )
    cache = _capture_and_delete(store, {LOSER_A})

    result = MergeReconciler(cache, store).reconcile([DeletedRecord(LOSER_A, MASTER_ID)])

    assert [link.content_document_id for link in result] == [DOC_B]
    assert sorted(link.content_document_id for link in store.links_on(MASTER_ID)) == [DOC_A, DOC_B]


def test_no_write_when_master_already_has_every_document() -> None:
    store = FakeLinkStore([make_link(LOSER_A, DOC_A), make_link(MASTER_ID, DOC_A)])
    cache = _capture_and_delete(store, {LOSER_A})
    _reset_counters(store)

    assert MergeReconciler(cache, store).reconcile([DeletedRecord(LOSER_A, MASTER_ID)]) == []
    assert store.fetch_calls == [{MASTER_ID}]
    assert store.insert_calls == []


def test_siblings_sharing_a_document_fail_the_whole_insert() -> None:
    store = FakeLinkStore(
        [
            make_link(LOSER_A, DOC_C),
            make_link(LOSER_A, DOC_A),
            make_link(LOSER_B, DOC_C),
        ]
    )
    cache = _capture_and_delete(store, {LOSER_A, LOSER_B})

    with pytest.raises(UpstreamWriteFailure) as excinfo:
        MergeReconciler(cache, store).reconcile(
            [DeletedRecord(LOSER_A, MASTER_ID), DeletedRecord(LOSER_B, MASTER_ID)]
        )

    attempted = [link.key for link in store.insert_calls[0]]
    assert attempted.count((MASTER_ID, DOC_C)) == 2
    assert excinfo.value.errors
    assert store.links_on(MASTER_ID) == []


def test_dedupe_siblings_collapses_repeated_documents() -> None:
    store = FakeLinkStore([make_link(LOSER_A, DOC_C), make_link(LOSER_B, DOC_C, share_type="C")])
    cache = _capture_and_delete(store, {LOSER_A, LOSER_B})

    result = MergeReconciler(cache, store, dedupe_siblings=True).reconcile(
        [DeletedRecord(LOSER_A, MASTER_ID), DeletedRecord(LOSER_B, MASTER_ID)]
    )

    assert [link.key for link in result] == [(MASTER_ID, DOC_C)]
    # first sibling in input order wins
    assert result[0].share_type == "V"


def test_masters_are_read_in_one_query() -> None:
    store = FakeLinkStore([make_link(LOSER_A, DOC_A), make_link(LOSER_B, DOC_B)])
    cache = _capture_and_delete(store, {LOSER_A, LOSER_B})
    _reset_counters(store)

    MergeReconciler(cache, store).reconcile(
        [DeletedRecord(LOSER_A, MASTER_ID), DeletedRecord(LOSER_B, OTHER_MASTER_ID)]
    )

    assert store.fetch_calls == [{MASTER_ID, OTHER_MASTER_ID}]
    assert [link.content_document_id for link in store.links_on(MASTER_ID)] == [DOC_A]
    assert [link.content_document_id for link in store.links_on(OTHER_MASTER_ID)] == [DOC_B]
    assert len(store.insert_calls) == 1


def test_malformed_master_id_is_a_plain_delete() -> None:
    store = FakeLinkStore([make_link(LOSER_A, DOC_A)])
    cache = _capture_and_delete(store, {LOSER_A})
    _reset_counters(store)

    result = MergeReconciler(cache, store).reconcile([DeletedRecord(LOSER_A, "not-an-id")])

    assert result == []
    assert store.fetch_calls == []


def test_read_failure_propagates() -> None:
    store = FakeLinkStore([make_link(LOSER_A, DOC_A)])
    cache = _capture_and_delete(store, {LOSER_A})
    store.fail_reads = True

    with pytest.raises(UpstreamReadFailure):
        MergeReconciler(cache, store).reconcile([DeletedRecord(LOSER_A, MASTER_ID)])
    assert store.insert_calls == []
