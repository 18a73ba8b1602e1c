from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

pytest.importorskip("pytest_httpx")

from collector.connectors.errors import RankerError
from collector.services.ranker_client import RankerClient, RankerItem, parse_candidates

BASE = "http://ranker.local:8087"


def test_parse_candidates_accepts_both_shapes():
    parsed = parse_candidates(["a", {"Id": "b", "Score": 0.5}, {"Id": "c"}, {"nope": 1}])
    assert [(c.id, c.score) for c in parsed] == [("a", 1.0), ("b", 0.5), ("c", 1.0)]
    assert parse_candidates(None) == []


@pytest.mark.parametrize(
    "payload",
    [[{"Id": "x", "Score": "n/a"}], [{"Id": "x", "Score": [1]}], {"Id": "x"}, "x"],
)
def test_parse_candidates_rejects_malformed_payload(payload):
    with pytest.raises(RankerError):
        parse_candidates(payload)


@pytest.mark.asyncio
async def test_recommend_with_bad_score_raises_ranker_error(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=httpx.URL(f"{BASE}/api/recommend/u1", params={"n": 4, "write-back-type": "read", "write-back-delay": 0}),
        json=[{"Id": "x", "Score": "n/a"}],
    )

    async with httpx.AsyncClient() as client:
        with pytest.raises(RankerError):
            await RankerClient(client, BASE).recommend("u1", 4)


@pytest.mark.asyncio
async def test_recommend_requests_read_write_back(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=httpx.URL(
            f"{BASE}/api/recommend/user%201",
            params={"n": 40, "write-back-type": "read", "write-back-delay": 0},
        ),
        match_headers={"X-API-Key": "secret"},
        json=[{"Id": "x", "Score": 2.5}, "y"],
    )

    async with httpx.AsyncClient() as client:
        ranked = await RankerClient(client, BASE + "/", api_key="secret").recommend("user 1", 40)

    assert [(c.id, c.score) for c in ranked] == [("x", 2.5), ("y", 1.0)]


@pytest.mark.asyncio
async def test_insert_items_posts_wire_format(httpx_mock):
    httpx_mock.add_response(method="POST", url=f"{BASE}/api/items", json={"RowAffected": 1})
    item = RankerItem(id="abc", categories=["science"], timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc), comment="t")

    async with httpx.AsyncClient() as client:
        await RankerClient(client, BASE).insert_items([item])

    body = json.loads(httpx_mock.get_requests()[0].content)
    assert body[0]["ItemId"] == "abc"
    assert body[0]["Categories"] == ["science"]
    assert body[0]["Comment"] == "t"


@pytest.mark.asyncio
async def test_errors_become_ranker_error(httpx_mock):
    httpx_mock.add_response(method="POST", url=f"{BASE}/api/users", status_code=500, text="boom")
    httpx_mock.add_exception(httpx.ConnectError("refused"), method="GET", url=httpx.URL(f"{BASE}/api/items", params={"n": 1}))

    async with httpx.AsyncClient() as client:
        ranker = RankerClient(client, BASE)
        with pytest.raises(RankerError) as excinfo:
            await ranker.insert_users([])
        assert excinfo.value.status == 500
        assert await ranker.health() is False
