"""Tests for the HTTP API."""

from pathlib import Path

import pytest
from aiohttp.test_utils import TestClient, TestServer

from ccbot.core.rate_limiter import RateLimiter
from ccbot.http_server import ApiServer
from ccbot.shared.repositories import ImageStore, ScheduleStore
from tests.conftest import make_date, make_weekly


@pytest.fixture
def store(tmp_path: Path) -> ScheduleStore:
    store = ScheduleStore(tmp_path / "schedules.json")
    store.create(make_weekly(name="first"))
    return store


@pytest.fixture
def image_store(tmp_path: Path) -> ImageStore:
    return ImageStore(tmp_path / "assets", "http://localhost:4000")


def client_for(server: ApiServer) -> TestClient:
    return TestClient(TestServer(server.app))


class TestService:
    @pytest.mark.asyncio
    async def test_root_and_health(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            root = await client.get("/")
            health = await client.get("/health")

            assert root.status == 200
            assert (await root.json())["status"] == "running"
            assert await health.json() == {"status": "starting", "ready": False}


class TestSchedules:
    @pytest.mark.asyncio
    async def test_list(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.get("/api/schedules")
            body = await resp.json()

        assert body["success"] is True
        assert [d["name"] for d in body["data"]] == ["first"]
        assert body["data"][0]["sourceChannel"] == "100"

    @pytest.mark.asyncio
    async def test_create(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.post("/api/schedules", json=make_date(name="new").to_json())
            body = await resp.json()

        assert resp.status == 201
        assert body == {"success": True, "index": 1, "data": make_date(name="new").to_json()}
        assert [d.name for d in store.list_all()] == ["first", "new"]

    @pytest.mark.asyncio
    async def test_create_rejects_invalid_payload(
        self, store: ScheduleStore, image_store: ImageStore
    ):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.post("/api/schedules", json={"name": "x", "type": "hourly"})
            body = await resp.json()

        assert resp.status == 400
        assert body["success"] is False
        assert len(store.list_all()) == 1

    @pytest.mark.asyncio
    async def test_create_rejects_non_json(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.post("/api/schedules", data="not json")

        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_update(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.put("/api/schedules/0", json=make_weekly(name="renamed").to_json())
            body = await resp.json()

        assert body["success"] is True
        assert body["index"] == 0
        assert store.list_all()[0].name == "renamed"

    @pytest.mark.asyncio
    async def test_update_unknown_index(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.put("/api/schedules/9", json=make_weekly().to_json())

            assert resp.status == 404
            assert (await resp.json())["success"] is False

    @pytest.mark.asyncio
    async def test_delete(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.delete("/api/schedules/0")
            body = await resp.json()

        assert body["success"] is True
        assert body["data"]["name"] == "first"
        assert store.list_all() == []

    @pytest.mark.asyncio
    async def test_non_integer_index(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.delete("/api/schedules/first")

        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_malformed_file(
        self, tmp_path: Path, store: ScheduleStore, image_store: ImageStore
    ):
        store.path.write_text("{oops")

        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.get("/api/schedules")

            assert resp.status == 500
            assert (await resp.json())["success"] is False

    @pytest.mark.asyncio
    async def test_token_guards_writes(self, store: ScheduleStore, image_store: ImageStore):
        server = ApiServer(store, image_store, api_token="secret")

        async with client_for(server) as client:
            denied = await client.delete("/api/schedules/0")
            wrong = await client.delete(
                "/api/schedules/0", headers={"Authorization": "Bearer nope"}
            )
            listed = await client.get("/api/schedules")
            allowed = await client.delete(
                "/api/schedules/0", headers={"Authorization": "Bearer secret"}
            )

        assert denied.status == 401
        assert wrong.status == 401
        assert listed.status == 200
        assert allowed.status == 200


class TestAssets:
    @pytest.mark.asyncio
    async def test_channel_data(self, store: ScheduleStore, image_store: ImageStore):
        infos = [{"url": "http://localhost:4000/assets/general/1_2.png", "orientation": "square"}]
        image_store.save_infos("General", infos)

        async with client_for(ApiServer(store, image_store)) as client:
            channels = await client.get("/assets")
            data = await client.get("/assets/general")
            all_data = await client.get("/all-data")

            assert await channels.json() == {"channels": ["general"]}
            assert await data.json() == infos
            assert await all_data.json() == infos

    @pytest.mark.asyncio
    async def test_missing_channel(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.get("/assets/nowhere")

            assert resp.status == 404
            assert await resp.json() == {"error": "Channel data not found"}

    @pytest.mark.asyncio
    async def test_static_files(self, store: ScheduleStore, image_store: ImageStore):
        image_path = image_store.channel_dir("general") / "1_2.png"
        image_path.write_bytes(b"\x89PNG fake")

        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.get("/assets/general/1_2.png")

            assert resp.status == 200
            assert await resp.read() == b"\x89PNG fake"


class TestCors:
    @pytest.mark.asyncio
    async def test_any_origin_by_default(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.get("/api/schedules", headers={"Origin": "https://site.example"})
            missing = await client.get("/assets/nowhere/x.png")

            assert resp.headers["Access-Control-Allow-Origin"] == "*"
            assert missing.status == 404
            assert missing.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_preflight(self, store: ScheduleStore, image_store: ImageStore):
        async with client_for(ApiServer(store, image_store)) as client:
            resp = await client.options(
                "/api/schedules/0",
                headers={
                    "Origin": "https://site.example",
                    "Access-Control-Request-Method": "PUT",
                },
            )

            assert resp.status == 204
            assert "PUT" in resp.headers["Access-Control-Allow-Methods"]
            assert "Authorization" in resp.headers["Access-Control-Allow-Headers"]
        assert store.list_all()[0].name == "first"

    @pytest.mark.asyncio
    async def test_configured_origins(self, store: ScheduleStore, image_store: ImageStore):
        server = ApiServer(store, image_store, cors_origins=["https://site.example"])

        async with client_for(server) as client:
            allowed = await client.get("/", headers={"Origin": "https://site.example"})
            other = await client.get("/", headers={"Origin": "https://evil.example"})

            assert allowed.headers["Access-Control-Allow-Origin"] == "https://site.example"
            assert allowed.headers["Vary"] == "Origin"
            assert "Access-Control-Allow-Origin" not in other.headers
            assert other.status == 200


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_over_limit_gets_429(self, store: ScheduleStore, image_store: ImageStore):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        server = ApiServer(store, image_store, rate_limiter=limiter)

        async with client_for(server) as client:
            statuses = [(await client.get("/api/schedules")).status for _ in range(2)]
            limited = await client.get("/api/schedules")
            body = await limited.json()

            assert statuses == [200, 200]
            assert limited.status == 429
            assert body == {"error": "Too many requests, please try again later."}
            assert 1 <= int(limited.headers["Retry-After"]) <= 61
            assert limited.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_limited_write_is_not_applied(
        self, store: ScheduleStore, image_store: ImageStore
    ):
        server = ApiServer(store, image_store, rate_limiter=RateLimiter(max_requests=0))

        async with client_for(server) as client:
            resp = await client.delete("/api/schedules/0")

            assert resp.status == 429
        assert [d.name for d in store.list_all()] == ["first"]

    @pytest.mark.asyncio
    async def test_health_is_exempt(self, store: ScheduleStore, image_store: ImageStore):
        server = ApiServer(store, image_store, rate_limiter=RateLimiter(max_requests=1))

        async with client_for(server) as client:
            statuses = [(await client.get("/health")).status for _ in range(3)]
            first = await client.get("/")
            second = await client.get("/")

            assert statuses == [200, 200, 200]
            assert first.status == 200
            assert second.status == 429
