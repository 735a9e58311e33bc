"""
Community API endpoints.

This provides:
1. Post feed, publishing, editing and deletion
2. Post image removal
3. Comment threads (one reply level)
4. Like toggles for posts and comments
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from dropview.core.security import get_current_active_user
from dropview.dependencies import (
    PaginationParams,
    get_comment_pagination,
    get_community_service,
    get_post_pagination,
)
from dropview.schemas.auth import APIError
from dropview.schemas.community import (
    CommentCreateRequest,
    CommentListResponse,
    CommentResponse,
    CommentUpdateRequest,
    LikeToggleResponse,
    MessageResponse,
    PostDeleteResponse,
    PostListResponse,
    PostResponse,
)
from dropview.services.community_service import CommunityService, ImageUpload

router = APIRouter(
    prefix="/community",
    tags=["Community"],
    responses={
        401: {"model": APIError, "description": "Not authorized"},
        404: {"model": APIError, "description": "Post or comment not found"},
    },
)


async def _read_image(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    """Turn an optional multipart file into an upload, ignoring empty fields."""
    if image is None or not image.filename:
        return None
    return ImageUpload(
        content=await image.read(),
        filename=image.filename,
        content_type=image.content_type,
    )


@router.get("/posts", response_model=PostListResponse, summary="List posts")
async def list_posts(
    pagination: PaginationParams = Depends(get_post_pagination),
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    """
    Newest-first feed.

    **Query Parameters:**
    - page: 1-based page number (invalid values mean 1)
    - limit: page size, default 10, at most 50
    """
    return await community_service.list_posts(page=pagination.page, limit=pagination.limit)


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a post",
    responses={502: {"model": APIError, "description": "Image upload failed"}},
)
async def create_post(
    type: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    """
    Publish a question or experience, optionally with a jpeg/png image.

    Counts as a community action towards the member's progress.
    """
    return await community_service.create_post(
        author_id=current_user["user_id"],
        post_type=type,
        content=content,
        title=title,
        image=await _read_image(image),
    )


@router.put(
    "/posts/{post_id}",
    response_model=PostResponse,
    summary="Update own post",
    responses={403: {"model": APIError, "description": "Not the author"}},
)
async def update_post(
    post_id: int,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    """Edit the title, content or image of a post. Only sent fields change."""
    fields = {
        name: value
        for name, value in (("title", title), ("content", content))
        if value is not None
    }
    return await community_service.update_post(
        post_id, current_user["user_id"], fields, image=await _read_image(image)
    )


@router.delete(
    "/posts/{post_id}",
    response_model=PostDeleteResponse,
    summary="Delete own post",
    responses={403: {"model": APIError, "description": "Not the author"}},
)
async def delete_post(
    post_id: int,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    """Delete a post together with its comments, replies and likes."""
    return await community_service.delete_post(post_id, current_user["user_id"])


@router.delete(
    "/posts/{post_id}/image",
    response_model=PostResponse,
    summary="Remove the image of own post",
    responses={
        400: {"model": APIError, "description": "Post has no image"},
        403: {"model": APIError, "description": "Not the author"},
    },
)
async def delete_post_image(
    post_id: int,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    return await community_service.delete_post_image(post_id, current_user["user_id"])


@router.post(
    "/posts/{post_id}/like",
    response_model=LikeToggleResponse,
    summary="Like or unlike a post",
)
async def toggle_post_like(
    post_id: int,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    return await community_service.toggle_post_like(post_id, current_user["user_id"])


@router.get(
    "/posts/{post_id}/comments",
    response_model=CommentListResponse,
    summary="List comments of a post",
)
async def list_comments(
    post_id: int,
    pagination: PaginationParams = Depends(get_comment_pagination),
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    """
    Oldest-first comment thread.

    **Query Parameters:**
    - page: 1-based page number (invalid values mean 1)
    - limit: page size, default 20, at most 100
    """
    return await community_service.list_comments(
        post_id, page=pagination.page, limit=pagination.limit
    )


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post",
    responses={400: {"model": APIError, "description": "Missing content or bad parent comment"}},
)
async def create_comment(
    post_id: int,
    comment_data: CommentCreateRequest,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    """
    Add a comment, or a reply when ``parent_comment_id`` names a top-level
    comment of the same post.
    """
    return await community_service.create_comment(
        post_id,
        current_user["user_id"],
        comment_data.content,
        parent_comment_id=comment_data.parent_comment_id,
    )


@router.put(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Update own comment",
    responses={403: {"model": APIError, "description": "Not the author"}},
)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    return await community_service.update_comment(
        comment_id, current_user["user_id"], comment_data.content
    )


@router.delete(
    "/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete own comment",
    responses={403: {"model": APIError, "description": "Not the author"}},
)
async def delete_comment(
    comment_id: int,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    """Delete a comment. Its replies stay, detached from it."""
    return await community_service.delete_comment(comment_id, current_user["user_id"])


@router.post(
    "/comments/{comment_id}/like",
    response_model=LikeToggleResponse,
    summary="Like or unlike a comment",
)
async def toggle_comment_like(
    comment_id: int,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    community_service: CommunityService = Depends(get_community_service),
) -> Dict[str, Any]:
    return await community_service.toggle_comment_like(comment_id, current_user["user_id"])
