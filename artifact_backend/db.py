"""
Database abstraction for artifacts: a SQLAlchemy implementation and an
in-memory one for development and tests.

``likeCount`` is denormalized from ``likedBy``. Only ``toggle_like`` changes
either, and both implementations apply the membership flip and the counter
change as one unit per artifact.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    JSON,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from artifact_backend.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

# Fields a client may overwrite after creation, in wire (camelCase) order.
DESCRIPTIVE_FIELDS = (
    "name",
    "image",
    "type",
    "description",
    "created_at",
    "discovered_at",
    "discovered_by",
    "location",
)

_WIRE_NAMES = {
    "created_at": "createdAt",
    "discovered_at": "discoveredAt",
    "discovered_by": "discoveredBy",
}

RESERVED_KEYS = frozenset(
    ["_id", "addedBy", "likedBy", "likeCount"]
    + [_WIRE_NAMES.get(name, name) for name in DESCRIPTIVE_FIELDS]
)


class DbClient(Protocol):
    """Interface for artifact persistence."""

    def create_artifact(
        self,
        added_by: Any,
        fields: Dict[str, Any],
        extra: Optional[dict] = None,
    ) -> "ArtifactRecord":
        ...

    def get_artifact(self, artifact_id: str) -> Optional["ArtifactRecord"]:
        ...

    def list_artifacts(self, search: Optional[str] = None) -> list["ArtifactRecord"]:
        ...

    def list_artifacts_by_creator(self, email: str) -> list["ArtifactRecord"]:
        ...

    def list_liked_artifacts(self, email: str) -> list["ArtifactRecord"]:
        ...

    def update_artifact(self, artifact_id: str, fields: Dict[str, Any]) -> bool:
        ...

    def delete_artifact(self, artifact_id: str) -> bool:
        ...

    def toggle_like(self, artifact_id: str, email: str) -> Optional[bool]:
        ...

    def close(self) -> None:
        ...


@dataclass
class ArtifactRecord:
    artifact_id: str
    added_by: dict
    name: Any = None
    image: Any = None
    type: Any = None
    description: Any = None
    created_at: Any = None
    discovered_at: Any = None
    discovered_by: Any = None
    location: Any = None
    liked_by: list[str] = field(default_factory=list)
    like_count: int = 0
    extra: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        data = {k: v for k, v in self.extra.items() if k not in RESERVED_KEYS}
        data["_id"] = self.artifact_id
        for name in DESCRIPTIVE_FIELDS:
            data[_WIRE_NAMES.get(name, name)] = getattr(self, name)
        data["addedBy"] = self.added_by
        data["likedBy"] = list(self.liked_by)
        data["likeCount"] = self.like_count
        return data


def _creator_email(added_by: Any) -> str:
    email = added_by.get("email") if isinstance(added_by, dict) else None
    if not email:
        raise ValidationError("User email is required to add an artifact")
    return email


def _search_name(name: Any) -> Optional[str]:
    # Only string names are searchable; other JSON values never match.
    return name if isinstance(name, str) else None


def _descriptive(fields: Dict[str, Any]) -> Dict[str, Any]:
    # Omitted keys become None, matching a full overwrite of every field.
    return {name: fields.get(name) for name in DESCRIPTIVE_FIELDS}


class InMemoryDbClient:
    """Simple in-memory database for development and tests.

    Toggles are serialized by a process-local lock; a second process would
    need its own store.
    """

    def __init__(self):
        self.artifacts: Dict[str, ArtifactRecord] = {}
        self._lock = threading.Lock()

    def create_artifact(
        self,
        added_by: Any,
        fields: Dict[str, Any],
        extra: Optional[dict] = None,
    ) -> ArtifactRecord:
        _creator_email(added_by)
        record = ArtifactRecord(
            artifact_id=uuid.uuid4().hex,
            added_by=copy.deepcopy(added_by),
            extra=copy.deepcopy(extra or {}),
            **_descriptive(fields),
        )
        with self._lock:
            self.artifacts[record.artifact_id] = record
        return copy.deepcopy(record)

    def get_artifact(self, artifact_id: str) -> Optional[ArtifactRecord]:
        with self._lock:
            record = self.artifacts.get(artifact_id)
            return copy.deepcopy(record) if record else None

    def _select(self, predicate) -> list[ArtifactRecord]:
        with self._lock:
            return [
                copy.deepcopy(record)
                for record in self.artifacts.values()
                if predicate(record)
            ]

    def list_artifacts(self, search: Optional[str] = None) -> list[ArtifactRecord]:
        if not search:
            return self._select(lambda record: True)
        needle = search.lower()
        return self._select(
            lambda record: needle in (_search_name(record.name) or "").lower()
        )

    def list_artifacts_by_creator(self, email: str) -> list[ArtifactRecord]:
        return self._select(lambda record: record.added_by.get("email") == email)

    def list_liked_artifacts(self, email: str) -> list[ArtifactRecord]:
        return self._select(lambda record: email in record.liked_by)

    def update_artifact(self, artifact_id: str, fields: Dict[str, Any]) -> bool:
        values = _descriptive(fields)
        with self._lock:
            record = self.artifacts.get(artifact_id)
            if not record:
                return False
            if all(getattr(record, name) == value for name, value in values.items()):
                return False
            for name, value in values.items():
                setattr(record, name, value)
            return True

    def delete_artifact(self, artifact_id: str) -> bool:
        with self._lock:
            return self.artifacts.pop(artifact_id, None) is not None

    def toggle_like(self, artifact_id: str, email: str) -> Optional[bool]:
        with self._lock:
            record = self.artifacts.get(artifact_id)
            if not record:
                return None
            if email in record.liked_by:
                record.liked_by.remove(email)
                record.like_count -= 1
                return False
            record.liked_by.append(email)
            record.like_count += 1
            return True

    def close(self) -> None:
        pass


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (Postgres in
    production, SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection, otherwise every thread sees its own empty db.
            # Concurrent requests would share its transaction, so this setup is
            # for sequential tests only.
            self.engine = create_engine(
                database_url,
                future=True,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(
                database_url,
                future=True,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError() from exc

    def _liked_by(self, session: Session, artifact_ids: list[str]) -> Dict[str, list[str]]:
        liked: Dict[str, list[str]] = {artifact_id: [] for artifact_id in artifact_ids}
        if not artifact_ids:
            return liked
        rows = session.execute(
            select(ArtifactLikeRow.artifact_id, ArtifactLikeRow.email)
            .where(ArtifactLikeRow.artifact_id.in_(artifact_ids))
            .order_by(ArtifactLikeRow.created_at.asc())
        ).all()
        for artifact_id, email in rows:
            liked[artifact_id].append(email)
        return liked

    def _to_records(self, session: Session, rows: list["ArtifactRow"]) -> list[ArtifactRecord]:
        liked = self._liked_by(session, [row.id for row in rows])
        return [
            ArtifactRecord(
                artifact_id=row.id,
                added_by=row.added_by,
                liked_by=liked[row.id],
                like_count=row.like_count,
                extra=row.extra or {},
                **{name: getattr(row, name) for name in DESCRIPTIVE_FIELDS},
            )
            for row in rows
        ]

    def _query(self, *criteria) -> list[ArtifactRecord]:
        with self._session() as session:
            stmt = select(ArtifactRow).where(*criteria).order_by(ArtifactRow.inserted_at.asc())
            rows = session.execute(stmt).scalars().all()
            return self._to_records(session, list(rows))

    def create_artifact(
        self,
        added_by: Any,
        fields: Dict[str, Any],
        extra: Optional[dict] = None,
    ) -> ArtifactRecord:
        email = _creator_email(added_by)
        with self._session() as session:
            row = ArtifactRow(
                id=uuid.uuid4().hex,
                added_by=added_by,
                added_by_email=email,
                search_name=_search_name(fields.get("name")),
                like_count=0,
                extra=extra or {},
                inserted_at=time.time(),
                **_descriptive(fields),
            )
            session.add(row)
            session.commit()
            return self._to_records(session, [row])[0]

    def get_artifact(self, artifact_id: str) -> Optional[ArtifactRecord]:
        with self._session() as session:
            row = session.get(ArtifactRow, artifact_id)
            if not row:
                return None
            return self._to_records(session, [row])[0]

    def list_artifacts(self, search: Optional[str] = None) -> list[ArtifactRecord]:
        if not search:
            return self._query()
        return self._query(ArtifactRow.search_name.icontains(search, autoescape=True))

    def list_artifacts_by_creator(self, email: str) -> list[ArtifactRecord]:
        return self._query(ArtifactRow.added_by_email == email)

    def list_liked_artifacts(self, email: str) -> list[ArtifactRecord]:
        liked_ids = select(ArtifactLikeRow.artifact_id).where(ArtifactLikeRow.email == email)
        return self._query(ArtifactRow.id.in_(liked_ids))

    def update_artifact(self, artifact_id: str, fields: Dict[str, Any]) -> bool:
        values = _descriptive(fields)
        with self._session() as session:
            row = session.execute(
                select(ArtifactRow).where(ArtifactRow.id == artifact_id).with_for_update()
            ).scalar_one_or_none()
            if not row:
                return False
            if all(getattr(row, name) == value for name, value in values.items()):
                return False
            for name, value in values.items():
                setattr(row, name, value)
            row.search_name = _search_name(values["name"])
            session.commit()
            return True

    def delete_artifact(self, artifact_id: str) -> bool:
        with self._session() as session:
            session.execute(
                delete(ArtifactLikeRow).where(ArtifactLikeRow.artifact_id == artifact_id)
            )
            deleted = session.execute(
                delete(ArtifactRow).where(ArtifactRow.id == artifact_id)
            ).rowcount
            session.commit()
            return deleted == 1

    def _lock_artifact(self, session: Session, artifact_id: str) -> bool:
        return (
            session.execute(
                select(ArtifactRow.id).where(ArtifactRow.id == artifact_id).with_for_update()
            ).scalar_one_or_none()
            is not None
        )

    def toggle_like(self, artifact_id: str, email: str) -> Optional[bool]:
        """Flip ``email``'s like on one artifact inside a single transaction.

        The artifact row is locked first where the dialect supports
        ``FOR UPDATE``; SQLite serializes the writes instead. Membership is
        decided by the conditional delete, and the counter moves by a SQL
        expression, so concurrent togglers never overwrite each other.
        """
        with self._session() as session:
            if not self._lock_artifact(session, artifact_id):
                return None

            removed = session.execute(
                delete(ArtifactLikeRow).where(
                    ArtifactLikeRow.artifact_id == artifact_id,
                    ArtifactLikeRow.email == email,
                )
            ).rowcount
            if removed:
                liked, delta = False, -1
            else:
                session.add(
                    ArtifactLikeRow(artifact_id=artifact_id, email=email, created_at=time.time())
                )
                session.flush()
                liked, delta = True, 1

            updated = session.execute(
                update(ArtifactRow)
                .where(ArtifactRow.id == artifact_id)
                .values(like_count=ArtifactRow.like_count + delta)
            ).rowcount
            if updated != 1:
                session.rollback()
                raise StoreError("Failed to toggle like status")
            session.commit()
            return liked

    def close(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class ArtifactRow(Base):
    __tablename__ = "artifacts"

    id = Column(String, primary_key=True)
    # Descriptive fields keep whatever JSON value the client sent.
    name = Column(JSON, nullable=True)
    image = Column(JSON, nullable=True)
    type = Column(JSON, nullable=True)
    description = Column(JSON, nullable=True)
    created_at = Column(JSON, nullable=True)
    discovered_at = Column(JSON, nullable=True)
    discovered_by = Column(JSON, nullable=True)
    location = Column(JSON, nullable=True)
    search_name = Column(Text, nullable=True, index=True)
    added_by = Column(JSON, nullable=False)
    added_by_email = Column(String, nullable=False, index=True)
    like_count = Column(Integer, nullable=False, default=0)
    extra = Column(JSON, nullable=False, default=dict)
    inserted_at = Column(Float, nullable=False)


class ArtifactLikeRow(Base):
    __tablename__ = "artifact_likes"

    artifact_id = Column(
        String, ForeignKey("artifacts.id", ondelete="CASCADE"), primary_key=True
    )
    email = Column(String, primary_key=True, index=True)
    created_at = Column(Float, nullable=False)
