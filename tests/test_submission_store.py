"""
Submission store behaviour against an in-memory SQLite database.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from judgestore.core.context import OperationContext
from judgestore.core.errors import (
    MalformedIdentity,
    OperationCancelled,
    StorageUnavailable,
    SubmissionNotFound,
)
from judgestore.models import SubmissionModel
from judgestore.schemas import JudgeUpdate, Language, Result
from judgestore.services.submissions import PAGE_SIZE, SubmissionStore, parse_identity


def _add_many(store, ctx, language, count):
    return [store.add(ctx, language, f"print({i})") for i in range(count)]


def test_add_returns_pending_record_with_identity(store, ctx, cpp):
    before = datetime.now(timezone.utc)
    submission = store.add(ctx, cpp, "int main() {}")
    after = datetime.now(timezone.utc)

    assert submission.id
    assert submission.status == "pending"
    assert submission.results == []
    assert submission.total_time is None and submission.max_memory is None
    assert before <= submission.date <= after
    assert submission.language == cpp


def test_added_record_is_immediately_queryable(store, ctx, cpp):
    submission = store.add(ctx, cpp, "int main() {}")

    page = store.query(ctx)
    assert [s.id for s in page] == [submission.id]
    assert page[0].status == "pending"
    assert page[0].results == []
    assert page[0].date == submission.date


def test_identities_increase_with_creation_order(store, ctx, cpp):
    added = _add_many(store, ctx, cpp, 3)
    keys = [parse_identity(s.id) for s in added]
    assert keys == sorted(keys)
    assert len(set(keys)) == 3


def test_language_is_stored_by_value(store, ctx, cpp):
    document = cpp.to_document()
    submission = store.add(ctx, Language.model_validate(document), "x")

    document["compileCmd"] = "clang++ a.cc"
    store.add(ctx, Language.model_validate(document), "y")

    stored = store.get(ctx, submission.id)
    assert stored.language.compile_cmd == "g++ -o a a.cc"
    assert stored.language == submission.language


def test_update_replaces_status_and_results_only(store, ctx, cpp):
    submission = store.add(ctx, cpp, "int main() { return 0; }")
    results = [
        Result(time=12, memory=2048, stdin="1 2", stdout="3"),
        Result(time=7, memory=1024, stderr="warning", log="ok"),
    ]

    receipt = store.update(ctx, submission.id, "accepted", results)
    assert receipt.matched is True

    stored = store.get(ctx, submission.id)
    assert stored.status == "accepted"
    assert stored.results == results
    assert stored.id == submission.id
    assert stored.source == submission.source
    assert stored.language == submission.language
    assert stored.date == submission.date


def test_update_is_wholesale_not_merge(store, ctx, cpp):
    submission = store.add(ctx, cpp, "x")
    store.update(ctx, submission.id, "running", [Result(time=1), Result(time=2)])
    store.update(ctx, submission.id, "wrong answer", [Result(time=3)])

    stored = store.get(ctx, submission.id)
    assert stored.status == "wrong answer"
    assert stored.results == [Result(time=3)]


def test_update_unknown_identity_is_permissive(store, ctx, cpp):
    store.add(ctx, cpp, "x")

    receipt = store.update(ctx, "999", "accepted", [Result(time=1)])

    assert receipt.matched is False
    assert store.get(ctx, "999") is None
    assert len(store.query(ctx)) == 1


def test_update_unknown_identity_in_strict_mode(settings, ctx):
    strict = settings.model_copy(update={"strict_updates": True})
    with SubmissionStore.open(strict) as store:
        with pytest.raises(SubmissionNotFound):
            store.update(ctx, "42", "accepted", [])


@pytest.mark.parametrize("token", ["abc", "", "-1", "0", "1.5", " 7", "0x10", "٣", str(2 ** 64), "9" * 5000])
def test_update_rejects_malformed_identity(store, ctx, token):
    with pytest.raises(MalformedIdentity):
        store.update(ctx, token, "accepted", [])


def test_apply_judge_update_echoes_payload(store, ctx, cpp):
    submission = store.add(ctx, cpp, "x")
    update = JudgeUpdate(
        id=submission.id,
        type="finish",
        status="accepted",
        language="c++",
        results=[{"time": 5, "memory": 64, "stdout": "hi"}],
    )

    assert store.apply_judge_update(ctx, update) is update
    assert store.get(ctx, submission.id).results == [Result(time=5, memory=64, stdout="hi")]


def test_query_without_cursor_returns_newest_page(store, ctx, cpp):
    added = _add_many(store, ctx, cpp, PAGE_SIZE + 3)

    page = store.query(ctx)

    assert len(page) == PAGE_SIZE
    assert [s.id for s in page] == [s.id for s in reversed(added)][:PAGE_SIZE]


def test_empty_cursor_means_newest(store, ctx, cpp):
    _add_many(store, ctx, cpp, 2)
    assert store.query(ctx, "") == store.query(ctx)


def test_query_cursor_returns_strictly_older(store, ctx, cpp):
    added = _add_many(store, ctx, cpp, 5)
    cursor = added[3].id

    page = store.query(ctx, cursor)

    assert [s.id for s in page] == [added[2].id, added[1].id, added[0].id]


def test_paging_to_exhaustion_covers_everything_once(store, ctx, cpp):
    added = _add_many(store, ctx, cpp, 2 * PAGE_SIZE + 4)

    seen = []
    cursor = None
    while True:
        page = store.query(ctx, cursor)
        if not page:
            break
        seen.extend(page)
        cursor = page[-1].id

    assert [s.id for s in seen] == [s.id for s in reversed(added)]


def test_pages_are_stable_against_new_inserts(store, ctx, cpp):
    _add_many(store, ctx, cpp, PAGE_SIZE + 5)
    first = store.query(ctx)
    expected = [s.id for s in store.query(ctx, first[-1].id)]

    store.add(ctx, cpp, "newer")

    assert [s.id for s in store.query(ctx, first[-1].id)] == expected
    assert store.query(ctx)[0].source == "newer"


def test_query_rejects_malformed_cursor_without_reading(store, ctx):
    with patch.object(store, "_session_factory") as factory:
        with pytest.raises(MalformedIdentity):
            store.query(ctx, "not-an-id")
    factory.assert_not_called()


def test_round_trip_preserves_source_and_result_order(store, ctx, cpp):
    source = "#include <cstdio>\r\nint main(){\tputs(\"héllo\");}\n\n"
    submission = store.add(ctx, cpp, source)
    results = [Result(time=t, stdout=str(t)) for t in (30, 10, 20, 10)]
    store.update(ctx, submission.id, "accepted", results)

    stored = store.query(ctx)[0]
    assert stored.source == source
    assert [r.time for r in stored.results] == [30, 10, 20, 10]
    assert stored.results == results


def test_results_are_stored_without_empty_fields(store, ctx, cpp):
    submission = store.add(ctx, cpp, "x")
    store.update(ctx, submission.id, "accepted", [Result(time=3, stdout="ok")])

    with store._session_factory() as db:
        row = db.get(SubmissionModel, parse_identity(submission.id))
        assert row.results == [{"time": 3, "stdout": "ok"}]
        assert row.language["sourceFileName"] == "a.cc"


def test_cancelled_context_is_refused(store, cpp):
    ctx = OperationContext.with_timeout(5.0)
    ctx.cancel()
    with pytest.raises(OperationCancelled):
        store.add(ctx, cpp, "x")
    assert store.query(OperationContext.with_timeout(5.0)) == []


def test_cancellation_before_commit_rolls_back(store, cpp):
    ctx = OperationContext.with_timeout(5.0)
    original_flush = Session.flush

    def cancel_after_flush(db, *args, **kwargs):
        original_flush(db, *args, **kwargs)
        ctx.cancel()

    with patch.object(Session, "flush", cancel_after_flush):
        with pytest.raises(OperationCancelled):
            store.add(ctx, cpp, "x")

    assert store.query(OperationContext.with_timeout(5.0)) == []


def test_expired_deadline_surfaces_as_storage_unavailable(store, cpp):
    ticks = iter([0.0, 10.0])
    ctx = OperationContext(1.0, clock=lambda: next(ticks, 10.0))
    with pytest.raises(StorageUnavailable):
        store.add(ctx, cpp, "x")


CONNECTION_LOST = OperationalError("SELECT", {}, Exception("server closed the connection"))


@pytest.mark.parametrize("operation, target", [
    ("add", "sqlalchemy.orm.Session.flush"),
    ("update", "sqlalchemy.orm.Query.update"),
    ("query", "sqlalchemy.orm.Query.all"),
])
def test_connection_failure_surfaces_as_storage_unavailable(store, ctx, cpp, operation, target):
    existing = store.add(ctx, cpp, "int main(){}")
    calls = {
        "add": lambda: store.add(ctx, cpp, "x"),
        "update": lambda: store.update(ctx, existing.id, "accepted", [Result(time=1)]),
        "query": lambda: store.query(ctx),
    }

    with patch(target, side_effect=CONNECTION_LOST):
        with patch.object(Session, "rollback", autospec=True, side_effect=Session.rollback) as rollback:
            with pytest.raises(StorageUnavailable) as exc_info:
                calls[operation]()

    assert exc_info.value.operation == operation
    assert exc_info.value.__cause__ is CONNECTION_LOST
    rollback.assert_called()
    assert [s.id for s in store.query(ctx)] == [existing.id]
    stored = store.get(ctx, existing.id)
    assert stored.status == "pending"
    assert stored.results == []


def test_oversized_cursor_is_malformed(store, ctx):
    with pytest.raises(MalformedIdentity) as exc_info:
        store.query(ctx, "9" * 5000)
    assert len(exc_info.value.message) < 120
