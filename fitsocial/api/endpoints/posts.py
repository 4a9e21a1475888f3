from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status

from fitsocial.api.deps import get_storage
from fitsocial.models.user import User
from fitsocial.schemas.base import MessageResponse
from fitsocial.schemas.post import CommentCreate, CommentDetail, CommentResponse, PostCreate, PostDetail
from fitsocial.services.auth import get_current_user
from fitsocial.services.storage import AbstractStorage
from fitsocial.utils.logger import feed_logger

router = APIRouter()


async def _get_post_or_404(storage: AbstractStorage, post_id: int, viewer_id: int) -> PostDetail:
    post = await storage.get_post(post_id, viewer_id=viewer_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.get("", response_model=List[PostDetail])
async def get_feed(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Posts by the current user and the people they follow, newest first."""
    return await storage.get_feed_posts(current_user.id)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PostDetail)
async def create_post(
    post_data: PostCreate,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    content = post_data.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post content is required")

    if post_data.workout_id is not None:
        workout = await storage.get_workout(post_data.workout_id)
        if workout is None or workout.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid workout")

    post = await storage.create_post(
        user_id=current_user.id,
        content=content,
        workout_id=post_data.workout_id,
        image=post_data.image,
    )
    feed_logger.info("Post created", context="POST", user_id=current_user.id, post_id=post.id)
    return await storage.get_post(post.id, viewer_id=current_user.id)


@router.get("/{post_id}", response_model=PostDetail)
async def get_post(
    post_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    return await _get_post_or_404(storage, post_id, current_user.id)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    post = await _get_post_or_404(storage, post_id, current_user.id)
    if post.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this post")

    await storage.delete_post(post_id)
    feed_logger.info("Post deleted", context="POST", user_id=current_user.id, post_id=post_id)
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/like", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def like_post(
    post_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    await _get_post_or_404(storage, post_id, current_user.id)
    if await storage.has_user_liked_post(current_user.id, post_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post already liked")

    await storage.create_like(current_user.id, post_id)
    return MessageResponse(message="Post liked successfully")


@router.delete("/{post_id}/like", response_model=MessageResponse)
async def unlike_post(
    post_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    await storage.delete_like(current_user.id, post_id)
    return MessageResponse(message="Post unliked successfully")


@router.get("/{post_id}/comments", response_model=List[CommentDetail])
async def get_post_comments(
    post_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    await _get_post_or_404(storage, post_id, current_user.id)
    return await storage.get_post_comments(post_id)


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED, response_model=CommentResponse)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Comment on a post, or reply to a comment with ``parentId``.

    Replies stay one level deep: answering a reply attaches to its top-level comment.
    """
    content = (comment_data.content or "").strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment content is required")

    await _get_post_or_404(storage, post_id, current_user.id)

    parent_id = comment_data.parent_id
    if parent_id:
        parent = await storage.get_comment(parent_id)
        if parent is None or parent.post_id != post_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid parent comment")
        if parent.parent_id is not None:
            parent_id = parent.parent_id

    comment = await storage.create_comment(post_id, current_user.id, content, parent_id or None)
    feed_logger.debug("Comment created", context="COMMENT", post_id=post_id, comment_id=comment.id)
    return comment


@router.delete("/{post_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    post_id: int,
    comment_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    comment = await storage.get_comment(comment_id)
    if comment is None or comment.post_id != post_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if comment.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this comment")

    await storage.delete_comment(comment_id)
    return MessageResponse(message="Comment deleted successfully")
