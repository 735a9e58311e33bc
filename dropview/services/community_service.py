"""
Community Service - Business logic for the community feed.

This provides:
1. Post publishing with optional image upload
2. Author-only editing and deletion (deletion cascades to comments)
3. One level of threaded comments with a cached per-post counter
4. Like toggling for posts and comments
5. Paginated feed and thread listing
"""

from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from dropview.config import settings
from dropview.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from dropview.core.storage import (
    S3StorageService,
    asset_key_for,
    image_extension,
    storage_service,
    unique_filename,
)
from dropview.models.community import Comment, Post, PostType
from dropview.models.user import User
from dropview.repositories.content_repository import CommentRepository, PostRepository
from dropview.repositories.interaction_repository import (
    CommentLikeRepository,
    PostLikeRepository,
)
from dropview.repositories.user_repository import UserRepository
from dropview.services.base import BaseService


class ImageUpload(NamedTuple):
    """An image received with a post form."""

    content: bytes
    filename: str
    content_type: Optional[str] = None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def clamp_paging(
    page: Optional[int], limit: Optional[int], default_limit: int, max_limit: int
) -> Tuple[int, int]:
    """
    Normalize a page request.

    A missing or non-positive page is 1. A missing or zero limit takes the
    default; any other limit is clamped to ``[1, max_limit]``.
    """
    page = page if page and page > 0 else 1
    limit = default_limit if not limit else max(1, min(limit, max_limit))
    return page, limit


class CommunityService(BaseService):
    """
    Posts, comments and likes.

    Every mutation of an existing post or comment is restricted to its
    author. Asset store failures on deletion are logged and ignored.
    """

    def __init__(
        self,
        db: AsyncSession,
        post_repo: Optional[PostRepository] = None,
        comment_repo: Optional[CommentRepository] = None,
        user_repo: Optional[UserRepository] = None,
        post_likes: Optional[PostLikeRepository] = None,
        comment_likes: Optional[CommentLikeRepository] = None,
        storage: Optional[S3StorageService] = None,
    ):
        super().__init__(db)
        self.post_repo = post_repo or PostRepository(db)
        self.comment_repo = comment_repo or CommentRepository(db)
        self.user_repo = user_repo or UserRepository(db)
        self.post_likes = post_likes or PostLikeRepository(db)
        self.comment_likes = comment_likes or CommentLikeRepository(db)
        self.storage = storage or storage_service

    # Posts

    async def create_post(
        self,
        author_id: int,
        post_type: Optional[str],
        content: Optional[str],
        title: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> Dict[str, Any]:
        """
        Publish a post and count it as a community action of its author.

        Args:
            author_id: Caller, taken from the bearer token
            post_type: "question" or "experience"
            content: Post body
            title: Optional title
            image: Optional image, uploaded before the post is stored

        Returns:
            The created post

        Raises:
            ValidationError: If type/content are missing or invalid
            ExternalServiceError: If the image upload fails
        """
        self._log_operation("create_post", author_id=author_id, type=post_type)

        errors: List[str] = []
        parsed_type = self._parse_post_type(post_type, errors)
        if _is_blank(content):
            errors.append("content is required")
        if image is not None:
            self._check_image(image, errors)
        if errors:
            raise ValidationError("Validation failed", details=errors)

        image_fields = await self._upload_image(image) if image is not None else {}

        try:
            post = await self.post_repo.create(
                {
                    "author_id": author_id,
                    "type": parsed_type,
                    "title": self._clean_title(title),
                    "content": content.strip(),
                    "comments_count": 0,
                    **image_fields,
                }
            )
        except Exception as error:
            if image_fields:
                await self._delete_asset(image_fields["image_key"])
            await self._handle_service_error(error, "create post")

        try:
            await self.user_repo.increment(author_id, "community_actions")
            post = await self.post_repo.get(post.id, fresh=True)
        except Exception as error:
            await self._handle_service_error(error, "create post")

        self.logger.info(f"Post created successfully: {post.id}")
        return self._format_post(post)

    async def list_posts(self, page: int = 1, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Newest-first page of the feed.

        ``total`` counts the whole collection, independent of paging.
        """
        page, limit = clamp_paging(
            page, limit, settings.posts_default_page_size, settings.posts_max_page_size
        )

        try:
            posts = await self.post_repo.get_feed(skip=(page - 1) * limit, limit=limit)
            total = await self.post_repo.count()
        except Exception as error:
            await self._handle_service_error(error, "list posts")

        return {
            "items": [self._format_post(post) for post in posts],
            "total": total,
            "page": page,
            "limit": limit,
        }

    async def update_post(
        self,
        post_id: int,
        caller_id: int,
        fields: Dict[str, Any],
        image: Optional[ImageUpload] = None,
    ) -> Dict[str, Any]:
        """
        Edit a post's title, content and/or image.

        Only keys present in ``fields`` are applied. When the image is
        replaced, the previous asset is deleted best-effort.

        Raises:
            NotFoundError: If the post does not exist
            AuthorizationError: If the caller is not the author
            ValidationError: If content would become empty
        """
        self._log_operation("update_post", post_id=post_id, caller_id=caller_id)

        post = await self._get_post(post_id)
        self._ensure_author(post.author_id, caller_id, "update this post")

        update_data: Dict[str, Any] = {}
        errors: List[str] = []

        if "title" in fields:
            update_data["title"] = self._clean_title(fields["title"])
        if "content" in fields:
            if _is_blank(fields["content"]):
                errors.append("content cannot be empty")
            else:
                update_data["content"] = fields["content"].strip()
        if image is not None:
            self._check_image(image, errors)
        if errors:
            raise ValidationError("Validation failed", details=errors)

        previous_key = self._stored_asset_key(post)
        if image is not None:
            update_data.update(await self._upload_image(image))

        try:
            if update_data:
                await self.post_repo.update(post.id, update_data)
            post = await self.post_repo.get(post.id, fresh=True)
        except Exception as error:
            await self._handle_service_error(error, "update post")

        if image is not None and previous_key and previous_key != post.image_key:
            await self._delete_asset(previous_key)

        return self._format_post(post)

    async def delete_post(self, post_id: int, caller_id: int) -> Dict[str, Any]:
        """
        Delete a post with all of its comments, replies and likes.

        Raises:
            NotFoundError: If the post does not exist
            AuthorizationError: If the caller is not the author
        """
        self._log_operation("delete_post", post_id=post_id, caller_id=caller_id)

        post = await self._get_post(post_id)
        self._ensure_author(post.author_id, caller_id, "delete this post")

        asset_key = self._stored_asset_key(post)

        try:
            removed_comments = await self.post_repo.delete_with_comments(post.id)
        except Exception as error:
            await self._handle_service_error(error, "delete post")

        if asset_key:
            await self._delete_asset(asset_key)

        self.logger.info(
            f"Post {post_id} deleted with {removed_comments} comments"
        )
        return {
            "message": "Post and associated comments deleted successfully",
            "deleted_comments": removed_comments,
        }

    async def delete_post_image(self, post_id: int, caller_id: int) -> Dict[str, Any]:
        """
        Remove a post's image. The image fields are cleared even if the
        asset store could not delete the file.

        Raises:
            NotFoundError: If the post does not exist
            AuthorizationError: If the caller is not the author
            BadRequestError: If the post has no image
        """
        self._log_operation("delete_post_image", post_id=post_id, caller_id=caller_id)

        post = await self._get_post(post_id)
        self._ensure_author(post.author_id, caller_id, "modify this post")

        if not post.has_image:
            raise BadRequestError("Post has no image")

        await self._delete_asset(self._stored_asset_key(post))

        try:
            await self.post_repo.update(
                post.id, {"image_filename": None, "image_path": None, "image_key": None}
            )
            post = await self.post_repo.get(post.id, fresh=True)
        except Exception as error:
            await self._handle_service_error(error, "delete post image")

        return self._format_post(post)

    async def toggle_post_like(self, post_id: int, caller_id: int) -> Dict[str, Any]:
        """
        Like or unlike a post.

        Returns:
            {"likes": count after the toggle, "liked": caller's membership}
        """
        self._log_operation("toggle_post_like", post_id=post_id, caller_id=caller_id)

        if not await self.post_repo.exists(post_id):
            raise NotFoundError("Post not found")

        try:
            liked, likes = await self.post_likes.toggle(post_id, caller_id)
        except Exception as error:
            await self._handle_service_error(error, "toggle post like")

        return {"likes": likes, "liked": liked}

    # Comments

    async def create_comment(
        self,
        post_id: int,
        author_id: int,
        content: Optional[str],
        parent_comment_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Comment on a post, or reply to one of its top-level comments.

        Raises:
            ValidationError: If content is missing
            NotFoundError: If the post does not exist
            BadRequestError: If the parent comment is unknown, belongs to
                another post or is itself a reply
        """
        self._log_operation(
            "create_comment", post_id=post_id, author_id=author_id, parent=parent_comment_id
        )

        if _is_blank(content):
            raise ValidationError("Validation failed", details=["content is required"])

        if not await self.post_repo.exists(post_id):
            raise NotFoundError("Post not found")

        if parent_comment_id is not None:
            parent = await self.comment_repo.get(parent_comment_id)
            if not parent:
                raise BadRequestError("Parent comment not found")
            if parent.post_id != post_id:
                raise BadRequestError("Parent comment belongs to a different post")
            if parent.parent_comment_id is not None:
                raise BadRequestError("Replies can only target top-level comments")

        try:
            comment = await self.comment_repo.create(
                {
                    "post_id": post_id,
                    "author_id": author_id,
                    "content": content.strip(),
                    "parent_comment_id": parent_comment_id,
                }
            )
            await self.post_repo.increment(post_id, "comments_count")
            comment = await self.comment_repo.get(comment.id, fresh=True)
        except Exception as error:
            await self._handle_service_error(error, "create comment")

        return self._format_comment(comment)

    async def list_comments(
        self, post_id: int, page: int = 1, limit: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Oldest-first page of a post's comments.

        The post's cached comment counter is rewritten when it disagrees
        with the real count.

        Raises:
            NotFoundError: If the post does not exist
        """
        page, limit = clamp_paging(
            page, limit, settings.comments_default_page_size, settings.comments_max_page_size
        )

        post = await self._get_post(post_id)

        try:
            comments = await self.comment_repo.get_thread(
                post_id, skip=(page - 1) * limit, limit=limit
            )
            total = await self.comment_repo.count_for_post(post_id)
        except Exception as error:
            await self._handle_service_error(error, "list comments")

        if post.comments_count != total:
            self.logger.info(
                f"Reconciling comments_count of post {post_id}: {post.comments_count} -> {total}"
            )
            await self._best_effort(
                self.post_repo.update(post_id, {"comments_count": total}),
                "comment count reconciliation",
            )

        return {
            "items": [self._format_comment(comment) for comment in comments],
            "total": total,
            "page": page,
            "limit": limit,
        }

    async def update_comment(
        self, comment_id: int, caller_id: int, content: Optional[str]
    ) -> Dict[str, Any]:
        """
        Edit a comment's content.

        Raises:
            NotFoundError: If the comment does not exist
            AuthorizationError: If the caller is not the author
            ValidationError: If content is empty
        """
        self._log_operation("update_comment", comment_id=comment_id, caller_id=caller_id)

        comment = await self._get_comment(comment_id)
        self._ensure_author(comment.author_id, caller_id, "update this comment")

        if _is_blank(content):
            raise ValidationError("Validation failed", details=["content is required"])

        try:
            await self.comment_repo.update(comment.id, {"content": content.strip()})
            comment = await self.comment_repo.get(comment.id, fresh=True)
        except Exception as error:
            await self._handle_service_error(error, "update comment")

        return self._format_comment(comment)

    async def delete_comment(self, comment_id: int, caller_id: int) -> Dict[str, Any]:
        """
        Delete a comment and its likes, then decrement the post's counter.

        Replies to the comment survive as top-level comments.

        Raises:
            NotFoundError: If the comment does not exist
            AuthorizationError: If the caller is not the author
        """
        self._log_operation("delete_comment", comment_id=comment_id, caller_id=caller_id)

        comment = await self._get_comment(comment_id)
        self._ensure_author(comment.author_id, caller_id, "delete this comment")
        post_id = comment.post_id

        try:
            await self.comment_repo.delete_comment(comment.id)
            await self.post_repo.increment(post_id, "comments_count", -1)
        except Exception as error:
            await self._handle_service_error(error, "delete comment")

        return {"message": "Comment deleted successfully"}

    async def toggle_comment_like(self, comment_id: int, caller_id: int) -> Dict[str, Any]:
        """
        Like or unlike a comment.

        Returns:
            {"likes": count after the toggle, "liked": caller's membership}
        """
        self._log_operation(
            "toggle_comment_like", comment_id=comment_id, caller_id=caller_id
        )

        if not await self.comment_repo.exists(comment_id):
            raise NotFoundError("Comment not found")

        try:
            liked, likes = await self.comment_likes.toggle(comment_id, caller_id)
        except Exception as error:
            await self._handle_service_error(error, "toggle comment like")

        return {"likes": likes, "liked": liked}

    # Helpers

    async def _get_post(self, post_id: int) -> Post:
        post = await self.post_repo.get(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    async def _get_comment(self, comment_id: int) -> Comment:
        comment = await self.comment_repo.get(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    @staticmethod
    def _ensure_author(author_id: int, caller_id: int, action: str) -> None:
        if author_id != caller_id:
            raise AuthorizationError(f"Not authorized to {action}")

    @staticmethod
    def _parse_post_type(post_type: Optional[str], errors: List[str]) -> Optional[PostType]:
        if _is_blank(post_type):
            errors.append("type is required")
            return None
        try:
            return PostType(post_type.strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in PostType)
            errors.append(f"type must be one of: {allowed}")
            return None

    @staticmethod
    def _clean_title(title: Optional[str]) -> Optional[str]:
        if title is None or not title.strip():
            return None
        return title.strip()

    @staticmethod
    def _check_image(image: ImageUpload, errors: List[str]) -> None:
        if image_extension(image.filename) not in settings.allowed_image_formats:
            allowed = ", ".join(settings.allowed_image_formats)
            errors.append(f"image must be one of: {allowed}")
        if not image.content:
            errors.append("image is empty")

    async def _upload_image(self, image: ImageUpload) -> Dict[str, Any]:
        stored_name = unique_filename(image.filename)
        try:
            stored = await self.storage.put(
                image.content,
                stored_name,
                image.content_type,
                original_filename=image.filename,
            )
        except Exception as error:
            self.logger.error(f"Image upload failed for {image.filename}: {error}")
            raise ExternalServiceError("Asset store", "Image upload failed") from error

        return {
            "image_filename": stored_name,
            "image_path": stored["url"],
            "image_key": stored["key"],
        }

    @staticmethod
    def _stored_asset_key(post: Post) -> Optional[str]:
        """Key of the post's stored image, derived from its filename."""
        if post.image_filename:
            return asset_key_for(post.image_filename)
        return post.image_key

    async def _delete_asset(self, key: Optional[str]) -> None:
        if not key:
            return
        deleted = await self._best_effort(self.storage.delete(key), f"asset delete {key}")
        if not deleted:
            self.logger.warning(f"Asset {key} was not deleted from the asset store")

    @staticmethod
    def _format_author(author: Optional[User]) -> Optional[Dict[str, Any]]:
        if author is None:
            return None
        return {"id": author.id, "username": author.username, "name": author.name}

    def _format_post(self, post: Post) -> Dict[str, Any]:
        image = None
        if post.has_image:
            image = {
                "filename": post.image_filename,
                "path": post.image_path,
                "key": post.image_key,
            }
        likes = post.liker_ids
        return {
            "id": post.id,
            "author": self._format_author(post.author),
            "type": post.type.value if isinstance(post.type, PostType) else post.type,
            "title": post.title,
            "content": post.content,
            "image": image,
            "likes": likes,
            "likes_count": len(likes),
            "comments_count": post.comments_count,
            "created_at": post.created_at,
            "updated_at": post.updated_at,
        }

    def _format_comment(self, comment: Comment) -> Dict[str, Any]:
        likes = comment.liker_ids
        return {
            "id": comment.id,
            "post_id": comment.post_id,
            "author": self._format_author(comment.author),
            "content": comment.content,
            "parent_comment_id": comment.parent_comment_id,
            "likes": likes,
            "likes_count": len(likes),
            "created_at": comment.created_at,
            "updated_at": comment.updated_at,
        }
