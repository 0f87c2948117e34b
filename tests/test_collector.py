"""Tests for the data collector."""

from datetime import UTC, datetime

import pytest
from factories import (
    REVIEWER,
    FakeClient,
    make_comment,
    make_comment_data,
    make_pr_data,
    make_reaction_data,
    make_user_data,
)

from prmetrics.collector import DataCollector, is_reviewer
from prmetrics.extractors.prs import extract_pr
from prmetrics.models import DateRange, ReactionKind
from prmetrics.repo import RepoInfo

REPO = RepoInfo(owner="acme", name="widgets")
WINDOW = DateRange(start=datetime(2025, 1, 5, tzinfo=UTC), end=datetime(2025, 1, 31, tzinfo=UTC))


def pr_from_payload(number):
    return extract_pr(make_pr_data(number=number, created_at="2025-01-10T00:00:00Z"))


def human(login="alice"):
    return make_user_data(login=login, type="User", id=7)


class TestIsReviewer:
    def test_case_insensitive(self):
        assert is_reviewer(make_comment(), "CodeRabbitAI[bot]")
        assert not is_reviewer(make_comment(), "someone")


class TestFetchPullRequests:
    """Tests for PR listing."""

    @pytest.mark.trio
    async def test_filters_to_window(self):
        client = FakeClient(
            prs=[
                make_pr_data(number=3, created_at="2025-02-02T00:00:00Z"),
                make_pr_data(number=2, created_at="2025-01-31T00:00:00Z"),
                make_pr_data(number=1, created_at="2025-01-05T00:00:00Z"),
            ]
        )
        collector = DataCollector(client)
        prs = await collector.fetch_pull_requests(REPO, WINDOW)

        assert [pr.number for pr in prs] == [2, 1]
        assert client.since == WINDOW.start
        assert collector.stats.total_prs == 2


class TestFetchComments:
    """Tests for per-PR comment fetching."""

    @pytest.mark.trio
    async def test_review_and_issue_comments(self):
        client = FakeClient(
            review={1: [make_comment_data(id=10)]},
            issue={1: [make_comment_data(id=20, path=None, position=None)]},
        )
        comments = await DataCollector(client).fetch_comments(REPO, 1)
        assert [c.id for c in comments] == [10, 20]
        assert all(c.pr_number == 1 for c in comments)

    @pytest.mark.trio
    async def test_reactions_only_when_reported(self):
        client = FakeClient(
            review={1: [make_comment_data(id=10, reactions={"total_count": 1}), make_comment_data(id=11)]},
            issue={1: [make_comment_data(id=20, reactions={"total_count": 2})]},
            reactions={10: [make_reaction_data()], 20: [make_reaction_data(), make_reaction_data(content="heart")]},
        )
        comments = await DataCollector(client).fetch_comments(REPO, 1)

        assert sorted(client.reaction_calls) == [(10, True), (20, False)]
        by_id = {c.id: c for c in comments}
        assert len(by_id[10].reactions) == 1
        assert by_id[11].reactions == []
        assert len(by_id[20].reactions) == 2


class TestCollectComments:
    """Tests for enrichment and reviewer filtering."""

    @pytest.mark.trio
    async def test_human_replies_attach_to_reviewer_comments(self):
        client = FakeClient(
            review={
                1: [
                    make_comment_data(id=10, reactions={"total_count": 2}),
                    make_comment_data(id=11, user=human(), in_reply_to_id=10, body="Done, thanks"),
                ]
            },
            reactions={10: [make_reaction_data(), make_reaction_data(content="rocket")]},
        )
        collector = DataCollector(client)
        prs = [pr_from_payload(1)]
        prs_out, comments = await collector.collect_comments(prs, REVIEWER, REPO)

        assert [c.id for c in comments] == [10]
        assert [r.id for r in comments[0].replies] == [11]
        assert comments[0].is_resolved
        assert comments[0].reactions[0].kind is ReactionKind.THUMBS_UP
        assert [c.id for c in prs_out[0].comments] == [10]
        assert collector.stats.total_comments == 2
        assert collector.stats.reviewer_comments == 1

    @pytest.mark.trio
    async def test_failed_pr_is_skipped(self):
        client = FakeClient(
            review={1: [make_comment_data(id=10)], 2: [make_comment_data(id=20)]},
            failing={2},
        )
        collector = DataCollector(client)
        prs_out, comments = await collector.collect_comments([pr_from_payload(1), pr_from_payload(2)], REVIEWER, REPO)

        assert [pr.number for pr in prs_out] == [1]
        assert [c.id for c in comments] == [10]
        assert collector.stats.failed_prs == [2]

    @pytest.mark.trio
    async def test_malformed_comment_is_skipped(self):
        bad_reaction = make_reaction_data(created_at="yesterday")
        client = FakeClient(
            review={
                1: [
                    make_comment_data(id=10),
                    make_comment_data(id=11, created_at="not-a-date"),
                    {"body": "no id or timestamps", "user": make_user_data()},
                    make_comment_data(id=12, reactions={"total_count": 1}),
                ]
            },
            reactions={12: [bad_reaction]},
        )
        collector = DataCollector(client)
        prs_out, comments = await collector.collect_comments([pr_from_payload(1)], REVIEWER, REPO)

        assert [pr.number for pr in prs_out] == [1]
        assert [c.id for c in comments] == [10]
        assert collector.stats.failed_prs == []
        assert collector.stats.processed_prs == 1
        assert collector.stats.enrichment_warnings == 3

    @pytest.mark.trio
    async def test_keeps_pr_order(self):
        client = FakeClient(review={n: [make_comment_data(id=n * 10)] for n in range(1, 9)})
        prs = [pr_from_payload(n) for n in range(8, 0, -1)]
        prs_out, comments = await DataCollector(client).collect_comments(prs, REVIEWER, REPO)
        assert [pr.number for pr in prs_out] == list(range(8, 0, -1))
        assert [c.id for c in comments] == [n * 10 for n in range(8, 0, -1)]

    @pytest.mark.trio
    async def test_none_raises(self):
        with pytest.raises(TypeError):
            await DataCollector(FakeClient()).collect_comments(None, REVIEWER, REPO)


class TestCollect:
    @pytest.mark.trio
    async def test_no_prs(self):
        assert await DataCollector(FakeClient()).collect(REPO, REVIEWER, WINDOW) == ([], [])

    @pytest.mark.trio
    async def test_end_to_end(self):
        client = FakeClient(
            prs=[make_pr_data(number=1, created_at="2025-01-10T00:00:00Z")],
            review={1: [make_comment_data(id=10), make_comment_data(id=11, user=human())]},
        )
        prs, comments = await DataCollector(client).collect(REPO, REVIEWER, WINDOW)
        assert [pr.number for pr in prs] == [1]
        assert [c.id for c in comments] == [10]
