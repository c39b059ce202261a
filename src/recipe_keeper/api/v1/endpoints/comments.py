"""Recipe comment endpoints.

Comments form a two-level thread: a reply names its parent comment, and
the list endpoint nests replies beneath their parents.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from recipe_keeper.api.dependencies import get_comment_repository, get_recipe_repository
from recipe_keeper.api.v1.endpoints.recipes import RecipeId, recipe_not_found
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.database.repositories.comments import (
    CommentData,
    CommentRepository,
)
from recipe_keeper.database.repositories.recipes import (
    RecipeRepository,  # noqa: TC001
)
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.social import (
    CommentCreateRequest,
    CommentResponse,
    CommentThreadResponse,
    CommentUpdateRequest,
)
from recipe_keeper.services.comments import build_comment_thread


logger = get_logger(__name__)

router = APIRouter(tags=["Comments"])

CommentId = Annotated[UUID, Path(alias="commentId", description="Comment ID")]


def _comment_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "COMMENT_NOT_FOUND", "message": "Comment not found"},
    )


def _empty_content() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "BAD_REQUEST", "message": "Comment cannot be empty"},
    )


async def _authored_comment(
    comments: CommentRepository, comment_id: UUID, user: CurrentUser
) -> CommentData:
    comment = await comments.get(comment_id)
    if comment is None:
        raise _comment_not_found()
    if comment.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "FORBIDDEN",
                "message": "You can only change your own comments",
            },
        )
    return comment


@router.get(
    "/recipes/{recipeId}/comments",
    response_model=CommentThreadResponse,
    summary="List a recipe's comments",
)
async def list_comments(
    recipe_id: RecipeId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    comments: Annotated[CommentRepository, Depends(get_comment_repository)],
) -> CommentThreadResponse:
    if await recipes.get_visible(recipe_id, user.id) is None:
        raise recipe_not_found()
    rows = await comments.list_for_recipe(recipe_id)
    return CommentThreadResponse(comments=build_comment_thread(rows), count=len(rows))


@router.post(
    "/recipes/{recipeId}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a recipe",
    description="Pass parentId to reply to another comment on the same recipe.",
)
async def create_comment(
    recipe_id: RecipeId,
    body: CommentCreateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    recipes: Annotated[RecipeRepository, Depends(get_recipe_repository)],
    comments: Annotated[CommentRepository, Depends(get_comment_repository)],
) -> CommentResponse:
    if await recipes.get_visible(recipe_id, user.id) is None:
        raise recipe_not_found()

    content = body.content.strip()
    if not content:
        raise _empty_content()

    if body.parent_id is not None:
        parent = await comments.get(body.parent_id)
        if parent is None or parent.recipe_id != recipe_id:
            raise _comment_not_found()

    comment = await comments.create(recipe_id, user.id, content, body.parent_id)
    logger.info("Comment added", recipe_id=str(recipe_id))
    return CommentResponse.model_validate(comment.model_dump())


@router.patch(
    "/comments/{commentId}",
    response_model=CommentResponse,
    summary="Edit your comment",
)
async def update_comment(
    comment_id: CommentId,
    body: CommentUpdateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    comments: Annotated[CommentRepository, Depends(get_comment_repository)],
) -> CommentResponse:
    await _authored_comment(comments, comment_id, user)
    content = body.content.strip()
    if not content:
        raise _empty_content()

    await comments.update_content(comment_id, user.id, content)
    updated = await comments.get(comment_id)
    if updated is None:
        raise _comment_not_found()
    return CommentResponse.model_validate(updated.model_dump())


@router.delete(
    "/comments/{commentId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete your comment",
)
async def delete_comment(
    comment_id: CommentId,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    comments: Annotated[CommentRepository, Depends(get_comment_repository)],
) -> Response:
    await _authored_comment(comments, comment_id, user)
    await comments.delete(comment_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
