"""Nest flat comment rows into reply threads."""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipe_keeper.schemas.social import CommentResponse


if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from recipe_keeper.database.repositories.comments import CommentData


def build_comment_thread(comments: Iterable[CommentData]) -> list[CommentResponse]:
    """Arrange comments as top-level threads with nested replies.

    Both levels are ordered by ``created_at`` ascending. A reply whose
    parent is not in ``comments`` (deleted, or on another page) is shown
    at the top level rather than dropped.
    """
    ordered = sorted(comments, key=lambda comment: comment.created_at)
    nodes: dict[UUID, CommentResponse] = {
        comment.id: CommentResponse.model_validate(comment.model_dump())
        for comment in ordered
    }

    roots: list[CommentResponse] = []
    for comment in ordered:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id) if comment.parent_id else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots
