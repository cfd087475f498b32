"""
Inkpost API: Comment Endpoint Tests
=====================================

What we test:
    ✅ Create: 201 with author, body required and capped at 1000 characters
    ✅ Listing is scoped to the post in the path and paginated
    ✅ A comment addressed through another post is 404, as are out-of-range ids
    ✅ Only the comment author may update or delete
    ✅ Deleting a comment leaves the post in place
"""

import pytest

from app.models.comment import Comment
from app.models.post import Post


@pytest.fixture
def make_comment(db):
    async def _make_comment(post: Post, author, body: str = "Nice post") -> Comment:
        comment = Comment(post_id=post.id, user_id=author.id, body=body)
        db.add(comment)
        await db.commit()
        return comment

    return _make_comment


class TestCreateComment:

    @pytest.mark.asyncio
    async def test_create(self, client, make_user, make_category, make_post, auth_headers, fetch):
        author = await make_user()
        reader = await make_user(name="Grace")
        post = await make_post(author, await make_category())

        response = await client.post(
            f"/api/posts/{post.id}/comments",
            json={"body": "Great read"},
            headers=await auth_headers(reader),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["body"] == "Great read"
        assert data["author"]["name"] == "Grace"
        assert set(data) == {"id", "author", "body", "created_at"}
        stored = await fetch(Comment, data["id"])
        assert (stored.post_id, stored.user_id) == (post.id, reader.id)

    @pytest.mark.asyncio
    async def test_empty_body(self, client, make_user, make_category, make_post, auth_headers, count_rows):
        author = await make_user()
        post = await make_post(author, await make_category())

        response = await client.post(
            f"/api/posts/{post.id}/comments", json={"body": ""}, headers=await auth_headers(author)
        )

        assert response.status_code == 422
        assert response.json()["errors"] == {"body": ["The body field is required."]}
        assert await count_rows(Comment) == 0

    @pytest.mark.asyncio
    async def test_body_too_long(self, client, make_user, make_category, make_post, auth_headers):
        author = await make_user()
        post = await make_post(author, await make_category())

        response = await client.post(
            f"/api/posts/{post.id}/comments",
            json={"body": "x" * 1001},
            headers=await auth_headers(author),
        )

        assert response.status_code == 422
        assert response.json()["errors"] == {
            "body": ["The body field must not be greater than 1000 characters."]
        }

    @pytest.mark.asyncio
    async def test_unknown_post(self, client, make_user, auth_headers):
        response = await client.post(
            "/api/posts/999/comments", json={"body": "hi"}, headers=await auth_headers(await make_user())
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Post not found."}


class TestReadComments:

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_post(
        self, client, make_user, make_category, make_post, make_comment, auth_headers
    ):
        author = await make_user()
        category = await make_category()
        post = await make_post(author, category)
        other_post = await make_post(author, category, title="Other")
        for i in range(11):
            await make_comment(post, author, body=f"c{i + 1}")
        await make_comment(other_post, author, body="elsewhere")
        headers = await auth_headers(author)

        first = (await client.get(f"/api/posts/{post.id}/comments", headers=headers)).json()
        second = (await client.get(f"/api/posts/{post.id}/comments?page=2", headers=headers)).json()

        assert len(first["data"]) == 10
        assert [c["body"] for c in second["data"]] == ["c11"]
        assert first["meta"]["total"] == 11
        assert "author" in first["data"][0]

    @pytest.mark.asyncio
    async def test_show(self, client, make_user, make_category, make_post, make_comment, auth_headers):
        author = await make_user()
        post = await make_post(author, await make_category())
        comment = await make_comment(post, author)

        response = await client.get(
            f"/api/posts/{post.id}/comments/{comment.id}", headers=await auth_headers(author)
        )

        assert response.status_code == 200
        assert response.json()["data"]["id"] == comment.id

    @pytest.mark.asyncio
    async def test_comment_through_another_post_is_404(
        self, client, make_user, make_category, make_post, make_comment, auth_headers
    ):
        author = await make_user()
        category = await make_category()
        post = await make_post(author, category)
        other_post = await make_post(author, category, title="Other")
        comment = await make_comment(other_post, author)

        response = await client.get(
            f"/api/posts/{post.id}/comments/{comment.id}", headers=await auth_headers(author)
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Comment not found."}

    @pytest.mark.asyncio
    async def test_out_of_range_ids_are_not_found(
        self, client, make_user, make_category, make_post, auth_headers
    ):
        author = await make_user()
        post = await make_post(author, await make_category())
        headers = await auth_headers(author)

        unknown_post = await client.get("/api/posts/99999999999999999999/comments", headers=headers)
        unknown_comment = await client.get(
            f"/api/posts/{post.id}/comments/99999999999999999999", headers=headers
        )

        assert unknown_post.status_code == 404
        assert unknown_post.json() == {"message": "Post not found."}
        assert unknown_comment.status_code == 404
        assert unknown_comment.json() == {"message": "Comment not found."}


class TestWriteComments:

    @pytest.mark.asyncio
    async def test_author_can_update(
        self, client, make_user, make_category, make_post, make_comment, auth_headers
    ):
        author = await make_user()
        post = await make_post(author, await make_category())
        comment = await make_comment(post, author)

        response = await client.patch(
            f"/api/posts/{post.id}/comments/{comment.id}",
            json={"body": "Edited"},
            headers=await auth_headers(author),
        )

        assert response.status_code == 200
        assert response.json()["data"]["body"] == "Edited"

    @pytest.mark.asyncio
    async def test_post_author_cannot_edit_someone_elses_comment(
        self, client, make_user, make_category, make_post, make_comment, auth_headers, fetch
    ):
        post_author = await make_user()
        commenter = await make_user()
        post = await make_post(post_author, await make_category())
        comment = await make_comment(post, commenter, body="Mine")

        response = await client.put(
            f"/api/posts/{post.id}/comments/{comment.id}",
            json={"body": "Overwritten"},
            headers=await auth_headers(post_author),
        )

        assert response.status_code == 403
        assert (await fetch(Comment, comment.id)).body == "Mine"

    @pytest.mark.asyncio
    async def test_delete_keeps_post(
        self, client, make_user, make_category, make_post, make_comment, auth_headers, count_rows
    ):
        author = await make_user()
        post = await make_post(author, await make_category())
        comment = await make_comment(post, author)

        response = await client.delete(
            f"/api/posts/{post.id}/comments/{comment.id}", headers=await auth_headers(author)
        )

        assert response.status_code == 204
        assert await count_rows(Comment) == 0
        assert await count_rows(Post) == 1

    @pytest.mark.asyncio
    async def test_non_author_cannot_delete(
        self, client, make_user, make_category, make_post, make_comment, auth_headers, count_rows
    ):
        author = await make_user()
        post = await make_post(author, await make_category())
        comment = await make_comment(post, author)

        response = await client.delete(
            f"/api/posts/{post.id}/comments/{comment.id}",
            headers=await auth_headers(await make_user()),
        )

        assert response.status_code == 403
        assert await count_rows(Comment) == 1
