"""
Like/unlike toggling and the liked-artifacts listing.
"""

from __future__ import annotations

import logging
from typing import Any

from artifact_backend.db import ArtifactRecord, DbClient
from artifact_backend.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


def toggle_like(db: DbClient, artifact_id: str, email: Any) -> bool:
    """Flip ``email``'s like on an artifact. Returns the new liked state."""
    if not email:
        raise ValidationError("Email is required to toggle like status")
    liked = db.toggle_like(artifact_id, email)
    if liked is None:
        raise NotFound()
    logger.info("%s %s artifact %s", email, "liked" if liked else "unliked", artifact_id)
    return liked


def liked_artifacts(db: DbClient, email: str) -> list[ArtifactRecord]:
    """Artifacts ``email`` currently likes.

    An empty result is reported as ``NotFound`` rather than an empty list;
    existing clients branch on the 404.
    """
    records = db.list_liked_artifacts(email)
    if not records:
        raise NotFound("No liked artifacts found")
    return records
