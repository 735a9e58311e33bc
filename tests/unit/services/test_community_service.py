"""
Unit tests for CommunityService authorization, cascading and image rules.
"""

from unittest.mock import AsyncMock

import pytest

from dropview.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    ExternalServiceError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from dropview.models.community import Comment, Post, PostType
from dropview.services.community_service import CommunityService, ImageUpload


def make_post(**overrides) -> Post:
    fields = {
        "id": 10,
        "author_id": 1,
        "type": PostType.EXPERIENCE,
        "title": "My haul",
        "content": "Tried three samples",
        "image_filename": None,
        "image_path": None,
        "image_key": None,
        "comments_count": 0,
    }
    fields.update(overrides)
    return Post(**fields)


def make_comment(**overrides) -> Comment:
    fields = {
        "id": 20,
        "post_id": 10,
        "author_id": 1,
        "content": "Nice!",
        "parent_comment_id": None,
    }
    fields.update(overrides)
    return Comment(**fields)


@pytest.fixture
def post_repo():
    repo = AsyncMock()
    repo.exists.return_value = True
    return repo


@pytest.fixture
def comment_repo():
    return AsyncMock()


@pytest.fixture
def user_repo():
    return AsyncMock()


@pytest.fixture
def storage():
    store = AsyncMock()
    store.put.return_value = {"url": "https://assets.test/DropView/beach", "key": "DropView/beach"}
    store.delete.return_value = True
    return store


@pytest.fixture
def service(mock_db, post_repo, comment_repo, user_repo, storage):
    return CommunityService(
        mock_db,
        post_repo=post_repo,
        comment_repo=comment_repo,
        user_repo=user_repo,
        post_likes=AsyncMock(),
        comment_likes=AsyncMock(),
        storage=storage,
    )


@pytest.mark.unit
class TestPosts:
    @pytest.mark.asyncio
    async def test_create_post_counts_community_action(self, service, post_repo, user_repo):
        post = make_post()
        post_repo.create.return_value = post
        post_repo.get.return_value = post

        result = await service.create_post(1, "experience", "Tried three samples", title="My haul")

        assert result["type"] == "experience"
        assert result["image"] is None
        user_repo.increment.assert_awaited_once_with(1, "community_actions")

    @pytest.mark.asyncio
    async def test_create_post_validates_type_and_content(self, service, post_repo, storage):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_post(1, "rant", "  ")

        assert "type must be one of: question, experience" in exc_info.value.details
        assert "content is required" in exc_info.value.details
        post_repo.create.assert_not_awaited()
        storage.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_post_rejects_unsupported_image(self, service, storage):
        image = ImageUpload(content=b"GIF89a", filename="cat.gif", content_type="image/gif")

        with pytest.raises(ValidationError):
            await service.create_post(1, "question", "Which one?", image=image)

        storage.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_post_upload_failure(self, service, post_repo, storage):
        storage.put.side_effect = ConnectionError("S3 upload failed: InternalError")
        image = ImageUpload(content=b"\xff\xd8", filename="beach.jpg")

        with pytest.raises(ExternalServiceError) as exc_info:
            await service.create_post(1, "question", "Which one?", image=image)

        assert exc_info.value.status_code == 502
        post_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upload_is_stored_under_a_unique_name(self, service, post_repo, storage):
        post_repo.create.return_value = make_post()
        post_repo.get.return_value = make_post()
        image = ImageUpload(content=b"\xff\xd8", filename="beach.jpg", content_type="image/jpeg")

        await service.create_post(1, "question", "Which one?", image=image)
        await service.create_post(1, "question", "And this one?", image=image)

        first, second = storage.put.await_args_list
        assert first.args[1] != second.args[1]
        assert first.args[1].endswith(".jpg")
        assert first.kwargs["original_filename"] == "beach.jpg"
        stored = post_repo.create.await_args_list[0].args[0]
        assert stored["image_filename"] == first.args[1]

    @pytest.mark.asyncio
    async def test_failed_insert_removes_uploaded_asset(self, service, post_repo, storage):
        post_repo.create.side_effect = RuntimeError("insert failed")
        image = ImageUpload(content=b"\xff\xd8", filename="beach.jpg")

        with pytest.raises(ServiceError):
            await service.create_post(1, "question", "Which one?", image=image)

        storage.delete.assert_awaited_once_with("DropView/beach")

    @pytest.mark.asyncio
    async def test_stored_post_keeps_asset_when_counter_fails(
        self, service, post_repo, user_repo, storage
    ):
        post_repo.create.return_value = make_post()
        user_repo.increment.side_effect = RuntimeError("counter failed")
        image = ImageUpload(content=b"\xff\xd8", filename="beach.jpg")

        with pytest.raises(ServiceError):
            await service.create_post(1, "question", "Which one?", image=image)

        storage.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_author_may_update(self, service, post_repo):
        post_repo.get.return_value = make_post(author_id=1)

        with pytest.raises(AuthorizationError):
            await service.update_post(10, 2, {"content": "hijacked"})

        post_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_missing_post(self, service, post_repo):
        post_repo.get.return_value = None

        with pytest.raises(NotFoundError):
            await service.update_post(10, 1, {"content": "edit"})

    @pytest.mark.asyncio
    async def test_replacing_image_deletes_previous_asset(self, service, post_repo, storage):
        old = make_post(image_filename="old.png", image_key="DropView/old")
        new = make_post(image_filename="beach.jpg", image_key="DropView/beach")
        post_repo.get.side_effect = [old, new]

        await service.update_post(10, 1, {}, image=ImageUpload(b"\xff\xd8", "beach.jpg"))

        storage.delete.assert_awaited_once_with("DropView/old")

    @pytest.mark.asyncio
    async def test_only_author_may_delete(self, service, post_repo):
        post_repo.get.return_value = make_post(author_id=1)

        with pytest.raises(AuthorizationError):
            await service.delete_post(10, 2)

        post_repo.delete_with_comments.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_survives_asset_store_failure(self, service, post_repo, storage):
        post_repo.get.return_value = make_post(image_filename="beach.jpg", image_key="DropView/beach")
        post_repo.delete_with_comments.return_value = 4
        storage.delete.side_effect = ConnectionError("asset store unavailable")

        result = await service.delete_post(10, 1)

        assert result["deleted_comments"] == 4
        storage.delete.assert_awaited_once_with("DropView/beach")

    @pytest.mark.asyncio
    async def test_delete_image_requires_an_image(self, service, post_repo):
        post_repo.get.return_value = make_post()

        with pytest.raises(BadRequestError):
            await service.delete_post_image(10, 1)

    @pytest.mark.asyncio
    async def test_delete_image_clears_fields_even_if_asset_delete_fails(
        self, service, post_repo, storage
    ):
        post = make_post(image_filename="beach.jpg", image_key="DropView/beach")
        post_repo.get.return_value = post
        storage.delete.return_value = False

        await service.delete_post_image(10, 1)

        post_repo.update.assert_awaited_once_with(
            10, {"image_filename": None, "image_path": None, "image_key": None}
        )

    @pytest.mark.asyncio
    async def test_like_missing_post(self, service, post_repo):
        post_repo.exists.return_value = False

        with pytest.raises(NotFoundError):
            await service.toggle_post_like(10, 1)

    @pytest.mark.asyncio
    async def test_list_posts_clamps_paging(self, service, post_repo):
        post_repo.get_feed.return_value = []
        post_repo.count.return_value = 0

        result = await service.list_posts(page=0, limit=1000)

        assert result["page"] == 1
        assert result["limit"] == 50
        post_repo.get_feed.assert_awaited_once_with(skip=0, limit=50)

    @pytest.mark.asyncio
    async def test_list_posts_negative_limit_is_one(self, service, post_repo):
        post_repo.get_feed.return_value = []
        post_repo.count.return_value = 0

        result = await service.list_posts(page=2, limit=-5)

        assert result["limit"] == 1
        post_repo.get_feed.assert_awaited_once_with(skip=1, limit=1)


@pytest.mark.unit
class TestComments:
    @pytest.mark.asyncio
    async def test_comment_requires_content(self, service, comment_repo):
        with pytest.raises(ValidationError):
            await service.create_comment(10, 1, "")

        comment_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_comment_on_missing_post(self, service, post_repo):
        post_repo.exists.return_value = False

        with pytest.raises(NotFoundError):
            await service.create_comment(10, 1, "hello")

    @pytest.mark.parametrize(
        "parent",
        [
            None,
            make_comment(id=21, post_id=99),
            make_comment(id=22, parent_comment_id=20),
        ],
        ids=["missing", "other-post", "nested-reply"],
    )
    @pytest.mark.asyncio
    async def test_invalid_parent_comment(self, service, comment_repo, parent):
        comment_repo.get.return_value = parent

        with pytest.raises(BadRequestError):
            await service.create_comment(10, 1, "reply", parent_comment_id=21)

        comment_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_comment_increments_post_counter(self, service, post_repo, comment_repo):
        comment = make_comment()
        comment_repo.create.return_value = comment
        comment_repo.get.return_value = comment

        result = await service.create_comment(10, 1, "Nice!")

        assert result["post_id"] == 10
        post_repo.increment.assert_awaited_once_with(10, "comments_count")

    @pytest.mark.asyncio
    async def test_list_comments_reconciles_counter(self, service, post_repo, comment_repo):
        post_repo.get.return_value = make_post(comments_count=5)
        comment_repo.get_thread.return_value = [make_comment()]
        comment_repo.count_for_post.return_value = 1

        result = await service.list_comments(10)

        assert result["total"] == 1
        assert result["limit"] == 20
        post_repo.update.assert_awaited_once_with(10, {"comments_count": 1})

    @pytest.mark.asyncio
    async def test_only_author_may_edit_comment(self, service, comment_repo):
        comment_repo.get.return_value = make_comment(author_id=1)

        with pytest.raises(AuthorizationError):
            await service.update_comment(20, 2, "edited")

        comment_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_comment_decrements_counter(self, service, post_repo, comment_repo):
        comment_repo.get.return_value = make_comment()

        await service.delete_comment(20, 1)

        comment_repo.delete_comment.assert_awaited_once_with(20)
        post_repo.increment.assert_awaited_once_with(10, "comments_count", -1)

    @pytest.mark.asyncio
    async def test_only_author_may_delete_comment(self, service, comment_repo):
        comment_repo.get.return_value = make_comment(author_id=1)

        with pytest.raises(AuthorizationError):
            await service.delete_comment(20, 2)

        comment_repo.delete_comment.assert_not_awaited()
