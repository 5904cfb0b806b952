"""Submission store: create, judge-update and page through submissions."""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Query, Session

from judgestore.core.config import Settings
from judgestore.core.context import OperationContext
from judgestore.core.errors import (
    InitializationFailure,
    MalformedIdentity,
    SubmissionNotFound,
    translate_storage_errors,
)
from judgestore.db import Base, create_session_factory, create_store_engine, ping, session_scope
from judgestore.models import SubmissionModel
from judgestore.schemas import (
    JudgeUpdate,
    Language,
    Result,
    Submission,
    SubmissionDraft,
    UpdateReceipt,
)

logger = structlog.get_logger(__name__)

PAGE_SIZE = 10
_MAX_KEY = 2 ** 63 - 1
_MAX_KEY_DIGITS = len(str(_MAX_KEY))


def parse_identity(token: str, operation: Optional[str] = None) -> int:
    """Decode an identity token into the table's primary key."""
    if (not isinstance(token, str) or len(token) > _MAX_KEY_DIGITS
            or not token.isascii() or not token.isdigit()):
        raise MalformedIdentity(token, operation)
    key = int(token)
    if key <= 0 or key > _MAX_KEY:
        raise MalformedIdentity(token, operation)
    return key


def format_identity(key: int) -> str:
    return str(key)


@dataclass(frozen=True)
class StatusResultsUpdate:
    """The only mutation a judging worker may apply to a stored submission."""
    status: str
    results: Tuple[Result, ...]

    def values(self) -> Dict[Any, Any]:
        return {
            SubmissionModel.status: self.status,
            SubmissionModel.results: [r.to_document() for r in self.results],
        }


@dataclass(frozen=True)
class IdentityFilter:
    key: int

    def apply(self, query: Query) -> Query:
        return query.filter(SubmissionModel.id == self.key)


@dataclass(frozen=True)
class OlderThanCursor:
    """Newest-first page of submissions strictly older than ``key``."""
    key: Optional[int] = None
    limit: int = PAGE_SIZE

    def apply(self, query: Query) -> Query:
        if self.key is not None:
            query = query.filter(SubmissionModel.id < self.key)
        return query.order_by(SubmissionModel.id.desc()).limit(self.limit)


def _to_submission(row: SubmissionModel) -> Submission:
    date = row.date
    if date.tzinfo is None:
        # SQLite drops the offset; dates are always written in UTC
        date = date.replace(tzinfo=timezone.utc)
    return Submission(
        id=format_identity(row.id),
        language=Language.model_validate(row.language),
        source=row.source,
        date=date,
        status=row.status,
        total_time=row.total_time,
        max_memory=row.max_memory,
        results=[Result.model_validate(r) for r in (row.results or [])],
    )


class SubmissionStore:
    """Handle on the submissions table.

    Construct once at startup with :meth:`open`, pass it to whoever needs it,
    and :meth:`close` it on shutdown. The store holds no locks of its own; each
    operation is one short transaction against the database.
    """

    def __init__(self, engine: Engine, strict_updates: bool = False):
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        self.strict_updates = strict_updates

    @classmethod
    def open(cls, settings: Settings) -> "SubmissionStore":
        """Connect to the configured database, failing fast if it is unreachable."""
        try:
            engine = create_store_engine(settings)
            ping(engine)
            if settings.create_schema:
                Base.metadata.create_all(bind=engine)
        except Exception as e:
            logger.error("store_initialization_failed", error=str(e))
            raise InitializationFailure(f"Cannot open submission store: {e}", "open") from e

        logger.info("store_opened", database=settings.database_name,
                    backend=engine.dialect.name)
        return cls(engine, strict_updates=settings.strict_updates)

    def close(self) -> None:
        self._engine.dispose()
        logger.info("store_closed")

    def __enter__(self) -> "SubmissionStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self._engine)

    @contextmanager
    def _session(self, ctx: OperationContext, operation: str) -> Iterator[Session]:
        ctx.check(operation)
        with translate_storage_errors(operation):
            with session_scope(self._session_factory) as db:
                if self._engine.dialect.name == "postgresql":
                    budget_ms = max(1, int(ctx.remaining() * 1000))
                    db.execute(text(f"SET LOCAL statement_timeout = {budget_ms}"))
                yield db

    def add(self, ctx: OperationContext, language: Language, source: str) -> Submission:
        """Persist a new pending submission and return it with its identity."""
        draft = SubmissionDraft(language=language, source=source)
        row = SubmissionModel(
            language=draft.language.to_document(),
            source=draft.source,
            date=draft.date,
            status=draft.status,
            results=[],
        )
        with self._session(ctx, "add") as db:
            db.add(row)
            db.flush()
            key = row.id
            ctx.check("add")

        submission = Submission(
            id=format_identity(key),
            language=draft.language,
            source=draft.source,
            date=draft.date,
            status=draft.status,
        )
        logger.info("submission_added", submission_id=submission.id,
                    language=language.name, source_length=len(source))
        return submission

    def update(
        self,
        ctx: OperationContext,
        identity: str,
        status: str,
        results: Sequence[Result],
    ) -> UpdateReceipt:
        """Overwrite a submission's status and results.

        An unknown identity is not an error unless the store was opened with
        strict updates; the receipt's ``matched`` flag tells the two apart.
        """
        key = parse_identity(identity, "update")
        change = StatusResultsUpdate(status=status, results=tuple(results))

        with self._session(ctx, "update") as db:
            matched = IdentityFilter(key).apply(db.query(SubmissionModel)).update(
                change.values(), synchronize_session=False
            )
            if not matched and self.strict_updates:
                raise SubmissionNotFound(identity, "update")
            ctx.check("update")

        logger.info("submission_updated", submission_id=identity, status=status,
                    results=len(change.results), matched=bool(matched))
        return UpdateReceipt(id=identity, status=status, results=list(change.results),
                             matched=bool(matched))

    def apply_judge_update(self, ctx: OperationContext, update: JudgeUpdate) -> JudgeUpdate:
        """Apply a judging worker's payload and echo it back."""
        self.update(ctx, update.id, update.status, update.results)
        return update

    def query(self, ctx: OperationContext, cursor: Optional[str] = None) -> List[Submission]:
        """Return up to PAGE_SIZE submissions older than ``cursor``, newest first."""
        key = parse_identity(cursor, "query") if cursor else None

        with self._session(ctx, "query") as db:
            rows = OlderThanCursor(key).apply(db.query(SubmissionModel)).all()
            page = [_to_submission(row) for row in rows]
            ctx.check("query")

        logger.debug("submissions_queried", cursor=cursor, count=len(page))
        return page

    def get(self, ctx: OperationContext, identity: str) -> Optional[Submission]:
        key = parse_identity(identity, "get")
        with self._session(ctx, "get") as db:
            row = IdentityFilter(key).apply(db.query(SubmissionModel)).one_or_none()
            return _to_submission(row) if row is not None else None
