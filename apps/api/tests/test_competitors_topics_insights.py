from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy import func
from sqlalchemy.future import select

from models.competitor import Competitor
from models.insight import INSIGHT_CATEGORIES
from services.insights import build_insights


FREE_USER_ID = "creator-free"
PREMIUM_USER_ID = "creator-premium"


async def _premium_headers(client, auth_header, user_id=PREMIUM_USER_ID):
    headers = auth_header(user_id)
    response = await client.post("/billing/upgrade", json={}, headers=headers)
    assert response.status_code == 200
    return headers


@pytest.mark.asyncio
async def test_free_user_cannot_add_competitor(api_client, auth_header, session_maker):
    headers = auth_header(FREE_USER_ID)

    response = await api_client.post(
        "/competitors", json={"competitor_url": "https://youtube.com/c/Foo"}, headers=headers
    )
    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["code"] == "premium_required"
    assert detail["feature"] == "competitor_analysis"

    async with session_maker() as session:
        count = (await session.execute(select(func.count()).select_from(Competitor))).scalar()
    assert count == 0
    assert (await api_client.get("/competitors", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_premium_user_tracks_competitor(api_client, auth_header):
    headers = await _premium_headers(api_client, auth_header)

    response = await api_client.post(
        "/competitors", json={"competitor_url": "https://youtube.com/c/Foo"}, headers=headers
    )
    assert response.status_code == 200
    competitor = response.json()
    assert competitor["competitor_channel_id"] == "Foo"
    assert competitor["is_premium"] is True
    assert competitor["notes"] == ""

    again = await api_client.post(
        "/competitors", json={"competitor_url": "https://youtube.com/c/Foo/"}, headers=headers
    )
    assert again.json()["id"] == competitor["id"]
    assert len((await api_client.get("/competitors", headers=headers)).json()) == 1


@pytest.mark.asyncio
async def test_competitor_notes_last_write_wins(api_client, auth_header):
    headers = await _premium_headers(api_client, auth_header)
    competitor = (
        await api_client.post("/competitors", json={"competitor_url": "https://youtube.com/c/Foo"}, headers=headers)
    ).json()

    for notes in ("first draft", "second draft"):
        response = await api_client.patch(
            f"/competitors/{competitor['id']}/notes", json={"notes": notes}, headers=headers
        )
        assert response.status_code == 200

    listed = (await api_client.get("/competitors", headers=headers)).json()
    assert listed[0]["notes"] == "second draft"


@pytest.mark.asyncio
async def test_competitor_insights_and_delete(api_client, auth_header):
    headers = await _premium_headers(api_client, auth_header)
    competitor = (
        await api_client.post("/competitors", json={"competitor_url": "https://youtube.com/c/Foo"}, headers=headers)
    ).json()

    insights = await api_client.post(f"/competitors/{competitor['id']}/insights", headers=headers)
    assert insights.status_code == 200
    payload = insights.json()
    expected_avg = int(competitor["view_count"] / (competitor["video_count"] or 1))
    assert payload["average_view_count"] == expected_avg
    assert len(payload["recommended_strategies"]) == 3

    assert (await api_client.delete(f"/competitors/{competitor['id']}", headers=headers)).status_code == 200
    missing = await api_client.delete(f"/competitors/{competitor['id']}", headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_competitor_insight_rates_use_mock_stats(api_client, auth_header):
    headers = await _premium_headers(api_client, auth_header)
    with patch("services.competitors.random_count", return_value=450):
        competitor = (
            await api_client.post("/competitors", json={"competitor_url": "https://youtube.com/c/Foo"}, headers=headers)
        ).json()
        payload = (await api_client.post(f"/competitors/{competitor['id']}/insights", headers=headers)).json()

    assert payload["engagement_rate"] == "4.50%"
    assert payload["growth_rate"] == "4.50% per month"


@pytest.mark.asyncio
async def test_trending_topics_append_each_batch(api_client, auth_header):
    headers = auth_header(FREE_USER_ID)

    for _ in range(2):
        response = await api_client.post("/trending-topics/generate", json={}, headers=headers)
        assert response.json()["count"] == 3

    topics = (await api_client.get("/trending-topics", headers=headers)).json()
    assert len(topics) == 6
    assert not any(topic["is_premium"] for topic in topics)


@pytest.mark.asyncio
async def test_premium_trending_topics_include_premium_batch(api_client, auth_header):
    headers = await _premium_headers(api_client, auth_header)

    response = await api_client.post("/trending-topics/generate", json={"niche": "gaming"}, headers=headers)
    assert response.json()["count"] == 7

    topics = (await api_client.get("/trending-topics", headers=headers)).json()
    assert sum(1 for topic in topics if topic["is_premium"]) == 4
    assert all(topic["description"].endswith("(gaming)") for topic in topics)

    topic_id = topics[0]["id"]
    assert (await api_client.delete(f"/trending-topics/{topic_id}", headers=headers)).status_code == 200
    assert len((await api_client.get("/trending-topics", headers=headers)).json()) == 6


@pytest.mark.asyncio
async def test_insights_refresh_replaces_previous_set(api_client, auth_header):
    headers = auth_header(FREE_USER_ID)

    first = await api_client.post("/insights/generate", headers=headers)
    assert first.json()["count"] == 1
    insights = (await api_client.get("/insights", headers=headers)).json()
    assert [insight["title"] for insight in insights] == ["Getting Started"]

    await api_client.post("/youtube/channels", json={"channel_url": "https://youtube.com/c/Mine"}, headers=headers)
    second = await api_client.post("/insights/generate", headers=headers)
    refreshed = (await api_client.get("/insights", headers=headers)).json()

    assert len(refreshed) == second.json()["count"]
    titles = {insight["title"] for insight in refreshed}
    assert "Getting Started" not in titles
    assert "Content Idea Opportunity" in titles
    assert all(insight["category"] in INSIGHT_CATEGORIES for insight in refreshed)


@pytest.mark.asyncio
async def test_dashboard_overview_counts_visible_rows(api_client, auth_header):
    headers = auth_header(FREE_USER_ID)
    await api_client.post("/youtube/channels", json={"channel_url": "https://youtube.com/c/Mine"}, headers=headers)
    await api_client.post("/trending-topics/generate", json={}, headers=headers)

    overview = (await api_client.get("/dashboard", headers=headers)).json()
    assert overview["channels"] == 1
    assert overview["videos"] == 5
    assert overview["trending_topics"] == 3
    assert overview["competitors"] == 0
    assert overview["is_premium"] is False


def _video(views, likes, comments, days_ago, now):
    return SimpleNamespace(
        view_count=views,
        like_count=likes,
        comment_count=comments,
        published_at=now - timedelta(days=days_ago),
    )


def test_insight_rules_cover_engagement_and_cadence():
    now = datetime(2026, 1, 31, tzinfo=timezone.utc)
    channels = [SimpleNamespace(subscriber_count=1_000)]
    videos = [_video(1_000, 90, 10, days, now) for days in (1, 5, 9, 60)]
    ideas = [SimpleNamespace()] * 2
    topics = [SimpleNamespace()]
    competitors = [SimpleNamespace(subscriber_count=50_000)]

    insights = build_insights(
        channels=channels, videos=videos, ideas=ideas, topics=topics, competitors=competitors, now=now
    )
    titles = {insight["title"] for insight in insights}

    assert "Strong Audience Engagement" in titles
    assert "Competitor Gap Opportunity" in titles
    assert "Balanced Planning Trend" in titles
    assert "Consistent Upload Trend" in titles
    assert "Getting Started" not in titles


def test_empty_workspace_gets_getting_started_only():
    insights = build_insights(channels=[], videos=[], ideas=[], topics=[], competitors=[])
    assert [insight["title"] for insight in insights] == ["Getting Started"]
    assert insights[0]["priority"] == 9
