"""
노하우 게시글 API 통합 테스트 (게시글, 댓글, 리액션)
"""
import pytest

from nihongo_hub.models import Comment, Reply


@pytest.mark.asyncio
class TestArticles:
    async def test_post_and_get_article(self, async_client, alice_headers):
        response = await async_client.post(
            "/api/knowhow/post",
            json={"title": "聴解の教え方", "content": "ディクテーションから始める", "tags": ["Listening", "聴解"]},
            headers=alice_headers,
        )

        assert response.status_code == 201
        article = response.json()["data"]
        assert article["author"] == "Alice"
        assert sorted(tag["name"] for tag in article["tags"]) == ["listening", "聴解"]

        detail = await async_client.get(f"/api/knowhow/{article['id']}")
        assert detail.status_code == 200
        assert detail.json()["data"]["title"] == "聴解の教え方"

    async def test_post_requires_auth(self, async_client):
        response = await async_client.post("/api/knowhow/post", json={"title": "t", "content": "c"})
        assert response.status_code == 401

    async def test_invalid_tag_is_400(self, async_client, alice_headers):
        response = await async_client.post(
            "/api/knowhow/post",
            json={"title": "t", "content": "c", "tags": [""]},
            headers=alice_headers,
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_private_article(self, async_client, alice_headers, bob_headers):
        created = await async_client.post(
            "/api/knowhow/post",
            json={"title": "非公開メモ", "content": "自分用", "is_public": False},
            headers=alice_headers,
        )
        article_id = created.json()["data"]["id"]

        assert (await async_client.get(f"/api/knowhow/{article_id}")).status_code == 404
        assert (await async_client.get(f"/api/knowhow/{article_id}", headers=bob_headers)).status_code == 404
        assert (await async_client.get(f"/api/knowhow/{article_id}", headers=alice_headers)).status_code == 200

        listed = await async_client.get("/api/knowhow")
        assert article_id not in [item["id"] for item in listed.json()["data"]]

    async def test_private_article_threads_hidden_from_others(self, async_client, session_factory, seed, clock, alice_headers, bob_headers):
        """비공개 게시글은 상세와 마찬가지로 댓글 / 답글도 작성자 외에는 404"""
        created = await async_client.post(
            "/api/knowhow/post",
            json={"title": "非公開メモ", "content": "自分用", "is_public": False},
            headers=alice_headers,
        )
        article_id = created.json()["data"]["id"]

        async with session_factory() as session:
            comment = Comment(article_id=article_id, user_id=seed.alice.id, content="下書きコメント", created_at=clock(5))
            session.add(comment)
            await session.flush()
            session.add(Reply(comment_id=comment.id, user_id=comment.user_id, content="追記", created_at=clock(6)))
            await session.commit()
            comment_id = comment.id

        urls = [f"/api/knowhow/{article_id}/comments", f"/api/knowhow/{article_id}/comments/{comment_id}/replies"]
        for url in urls:
            assert (await async_client.get(url)).status_code == 404
            assert (await async_client.get(url, headers=bob_headers)).status_code == 404
            assert (await async_client.get(url, headers=alice_headers)).status_code == 200

    async def test_list_filters_by_author(self, async_client, seed):
        response = await async_client.get("/api/knowhow", params={"author": "bob"})

        assert response.status_code == 200
        assert [item["id"] for item in response.json()["data"]] == [seed.article.id]
        assert response.json()["pagination"]["totalItems"] == 1


@pytest.mark.asyncio
class TestArticleComments:
    async def test_comment_and_reply_on_article(self, async_client, seed, alice_headers, bob_headers):
        created = await async_client.post(
            f"/api/knowhow/{seed.article.id}/comments",
            json={"content": "授業で使ってみます"},
            headers=alice_headers,
        )
        assert created.status_code == 201
        comment = created.json()["data"]
        assert comment["articleId"] == seed.article.id
        assert comment["type"] == "comment"

        reply = await async_client.post(
            f"/api/knowhow/{seed.article.id}/comments/{comment['id']}/replies",
            json={"content": "ぜひ感想を教えてください"},
            headers=bob_headers,
        )
        assert reply.status_code == 201

        replies = await async_client.get(f"/api/knowhow/{seed.article.id}/comments/{comment['id']}/replies")
        assert [item["author"] for item in replies.json()["data"]] == ["Bob"]

        listed = await async_client.get(f"/api/knowhow/{seed.article.id}/comments")
        assert listed.json()["data"][0]["replyCount"] == 1

        detail = await async_client.get(f"/api/knowhow/{seed.article.id}")
        assert detail.json()["data"]["commentCount"] == 1

    async def test_reply_to_comment_of_other_parent_is_404(self, async_client, seed, alice_headers, bob_headers):
        slide_comment = await async_client.post(
            f"/api/discussions/slides/{seed.slide.id}/comments",
            json={"content": "スライドへの質問"},
            headers=bob_headers,
        )
        comment_id = slide_comment.json()["data"]["id"]

        response = await async_client.post(
            f"/api/knowhow/{seed.article.id}/comments/{comment_id}/replies",
            json={"content": "返信"},
            headers=alice_headers,
        )
        assert response.status_code == 404


@pytest.mark.asyncio
class TestReactions:
    async def test_reaction_lifecycle(self, async_client, seed, alice_headers, bob_headers):
        base = f"/api/knowhow/{seed.article.id}/reactions"

        mine = await async_client.get(f"{base}/user", headers=alice_headers)
        assert mine.json()["data"]["reactionType"] == "none"

        await async_client.post(base, json={"reaction_type": "like"}, headers=alice_headers)
        changed = await async_client.post(base, json={"reaction_type": "love"}, headers=alice_headers)
        assert changed.status_code == 200
        assert changed.json()["data"]["reactionType"] == "love"

        await async_client.post(base, json={"reaction_type": "love"}, headers=bob_headers)

        counts = (await async_client.get(base)).json()["data"]
        assert counts == {"love": 2, "like": 0, "haha": 0, "wow": 0, "sad": 0, "angry": 0}

        removed = await async_client.delete(base, headers=alice_headers)
        assert removed.json()["data"] == {"articleId": seed.article.id, "reactionType": "none", "removed": True}

        counts = (await async_client.get(base)).json()["data"]
        assert counts["love"] == 1

    async def test_invalid_reaction_is_400(self, async_client, seed, alice_headers):
        response = await async_client.post(
            f"/api/knowhow/{seed.article.id}/reactions",
            json={"reaction_type": "clap"},
            headers=alice_headers,
        )

        assert response.status_code == 400
        assert "allowed" in response.json()["error"]

    async def test_reaction_on_missing_article_is_404(self, async_client, alice_headers):
        response = await async_client.post(
            "/api/knowhow/9999/reactions",
            json={"reaction_type": "like"},
            headers=alice_headers,
        )
        assert response.status_code == 404

    async def test_user_reaction_requires_auth(self, async_client, seed):
        response = await async_client.get(f"/api/knowhow/{seed.article.id}/reactions/user")
        assert response.status_code == 401
