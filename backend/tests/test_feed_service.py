"""Tests for the DB-backed feed service (database mocked)."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException

from app.core.config import settings
from app.services.feed import get_feed
from app.services.feed_selector import FeedOrdering, encode_cursor
from factories import NOW, make_pet, make_post, make_user, mock_db, scalar_result, scalars_result


def _ids(result) -> list[int]:
    return [item.post.id for item in result.items]


class TestExploreFeed:
    @pytest.mark.asyncio
    async def test_ranks_candidates_by_engagement(self):
        candidates = [
            make_post(1, likes=3, age_hours=1),
            make_post(2, likes=40, age_hours=2),
            make_post(3, comments=5, age_hours=3),
        ]
        db = mock_db(scalars_result(candidates))

        result = await get_feed(db, ordering=FeedOrdering.ENGAGEMENT, now=NOW)

        assert _ids(result) == [2, 3, 1]
        assert result.has_more is False
        assert result.total is None
        db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_query_filters_moderated_and_public_rows(self):
        db = mock_db(scalars_result([]))
        await get_feed(db, ordering=FeedOrdering.ENGAGEMENT, now=NOW)

        sql = str(db.execute.await_args.args[0])
        assert "posts.deleted_at IS NULL" in sql
        assert "posts.is_hidden IS" in sql
        assert "posts.visibility" in sql
        assert "ORDER BY posts.created_at DESC, posts.id ASC" in sql

    @pytest.mark.asyncio
    async def test_drops_rows_the_selector_rejects(self):
        candidates = [
            make_post(1, likes=3),
            make_post(2, likes=99, is_hidden=True),
            make_post(3, likes=50, visibility="private"),
        ]
        db = mock_db(scalars_result(candidates))
        result = await get_feed(db, now=NOW)
        assert _ids(result) == [1]

    @pytest.mark.asyncio
    async def test_empty_feed(self):
        db = mock_db(scalars_result([]))
        result = await get_feed(db, ordering=FeedOrdering.RECENCY, now=NOW)
        assert result.items == []
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_zero_limit_falls_back_to_default_page(self):
        candidates = [make_post(i, age_hours=i) for i in range(1, 26)]
        db = mock_db(scalars_result(candidates))
        result = await get_feed(db, ordering=FeedOrdering.RECENCY, limit=0, now=NOW)
        assert len(result.items) == 20
        assert result.has_more is True


class TestRecencyFeed:
    @pytest.mark.asyncio
    async def test_total_comes_from_count_query(self):
        candidates = [make_post(i, age_hours=i) for i in range(1, 4)]
        db = mock_db(scalars_result(candidates), scalar_result(42))

        result = await get_feed(
            db, ordering=FeedOrdering.RECENCY, limit=2, include_total=True, now=NOW
        )

        assert _ids(result) == [1, 2]
        assert result.total == 42
        assert result.has_more is True
        assert db.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_cursor_is_pushed_into_sql(self):
        anchor = make_post(7, age_hours=5)
        cursor = encode_cursor(anchor.created_at, anchor.id)
        db = mock_db(scalars_result([make_post(8, age_hours=6)]))

        result = await get_feed(db, ordering=FeedOrdering.RECENCY, cursor=cursor, now=NOW)

        sql = str(db.execute.await_args.args[0])
        assert "posts.created_at <" in sql
        assert "posts.id >" in sql
        assert _ids(result) == [8]


class TestPersonalizedFeed:
    @pytest.mark.asyncio
    @patch("app.services.feed.get_following_ids", new_callable=AsyncMock)
    @patch("app.services.feed.get_owned_pet_ids", new_callable=AsyncMock)
    @patch("app.services.feed.get_owned_pet", new_callable=AsyncMock)
    async def test_followers_posts_need_follow_edge(
        self, mock_owned, mock_owned_ids, mock_following
    ):
        mock_owned.return_value = make_pet(1)
        mock_owned_ids.return_value = {1}
        mock_following.return_value = {2}
        candidates = [
            make_post(10, pet_id=2, visibility="followers", likes=5),
            make_post(11, pet_id=3, visibility="followers", likes=50),
            make_post(12, pet_id=1, visibility="private", likes=1),
            make_post(13, pet_id=4, visibility="public", likes=2),
            make_post(14, pet_id=3, visibility="private", likes=80),
        ]
        db = mock_db(scalars_result(candidates))

        result = await get_feed(
            db,
            ordering=FeedOrdering.RECENCY,
            user=make_user(1),
            pet_id=1,
            now=NOW,
        )

        assert _ids(result) == [10, 12, 13]
        mock_following.assert_awaited_once_with(db, 1)

    @pytest.mark.asyncio
    @patch("app.services.feed.get_owned_pet", new_callable=AsyncMock)
    async def test_rejects_foreign_pet(self, mock_owned):
        mock_owned.side_effect = HTTPException(status_code=403, detail="nope")
        db = mock_db()
        with pytest.raises(HTTPException) as exc_info:
            await get_feed(db, user=make_user(1), pet_id=99, now=NOW)
        assert exc_info.value.status_code == 403
        db.execute.assert_not_awaited()


def _int_params(statement) -> list[int]:
    params = statement.compile().params.values()
    return [v for v in params if isinstance(v, int) and not isinstance(v, bool)]


class TestPageBounds:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("ordering", [FeedOrdering.RECENCY, FeedOrdering.ENGAGEMENT])
    async def test_overflowing_offset_keeps_sql_limit_bounded(self, ordering):
        db = mock_db(scalars_result([make_post(1)]))

        result = await get_feed(db, ordering=ordering, offset=10**20, limit=5, now=NOW)

        statement = db.execute.await_args.args[0]
        assert max(_int_params(statement)) == settings.feed_max_offset + 5 + 1
        assert result.offset == settings.feed_max_offset
        assert result.limit == 5
        assert result.items == []
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_result_carries_effective_page(self):
        db = mock_db(scalars_result([]))
        result = await get_feed(db, offset=-7, limit=5000, now=NOW)
        assert (result.offset, result.limit) == (0, settings.feed_max_page_size)


class TestTotals:
    @pytest.mark.asyncio
    async def test_recency_total_ignores_cursor(self):
        anchor = make_post(7, age_hours=5)
        cursor = encode_cursor(anchor.created_at, anchor.id)
        db = mock_db(scalars_result([make_post(8, age_hours=6)]), scalar_result(12))

        result = await get_feed(
            db, ordering=FeedOrdering.RECENCY, cursor=cursor, include_total=True, now=NOW
        )

        assert result.total == 12
        page_sql = str(db.execute.await_args_list[0].args[0])
        count_sql = str(db.execute.await_args_list[1].args[0])
        assert "posts.created_at <" in page_sql
        assert "count(" in count_sql.lower()
        assert "posts.deleted_at IS NULL" in count_sql
        assert "posts.created_at <" not in count_sql

    @pytest.mark.asyncio
    async def test_engagement_total_counts_rankable_candidates(self):
        candidates = [make_post(i, likes=i) for i in range(1, 5)]
        candidates.append(make_post(9, likes=99, is_hidden=True))
        db = mock_db(scalars_result(candidates))

        result = await get_feed(db, limit=2, include_total=True, now=NOW)

        assert _ids(result) == [4, 3]
        assert result.total == 4
        assert result.has_more is True
        db.execute.assert_awaited_once()
