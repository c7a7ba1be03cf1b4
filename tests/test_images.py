"""Tests for the image store and the image mirror."""

import json
from pathlib import Path
from types import SimpleNamespace

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from ccbot.cogs.images import ImageMirror
from ccbot.shared.repositories import ImageStore, orientation_for, sanitize_channel_name

BASE_URL = "http://localhost:4000"


@pytest.fixture
def image_store(tmp_path: Path) -> ImageStore:
    return ImageStore(tmp_path / "assets", BASE_URL)


def info(name: str, orientation: str = "square") -> dict:
    return {"url": f"{BASE_URL}/assets/general/{name}", "orientation": orientation}


class TestHelpers:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [("General", "general"), ("memes & pics!", "memes___pics_"), ("a-b_c", "a-b_c")],
    )
    def test_sanitize_channel_name(self, name: str, expected: str):
        assert sanitize_channel_name(name) == expected

    @pytest.mark.parametrize(
        ("width", "height", "expected"),
        [
            (800, 600, "horizontal"),
            (600, 800, "vertical"),
            (500, 500, "square"),
            (None, 500, None),
            (0, 0, None),
        ],
    )
    def test_orientation_for(self, width, height, expected):
        assert orientation_for(width, height) == expected


class TestImageStore:
    def test_public_url(self, image_store: ImageStore):
        assert image_store.public_url("General", "1.png") == f"{BASE_URL}/assets/general/1.png"

    def test_incremental_save_merges_and_dedupes(self, image_store: ImageStore):
        image_store.save_infos("general", [info("1.png"), info("2.png")])

        updated = image_store.save_infos("general", [info("2.png"), info("3.png")])

        assert [i["url"].rsplit("/", 1)[-1] for i in updated] == ["1.png", "2.png", "3.png"]
        assert image_store.load("general") == updated

    def test_full_update_replaces_and_deletes_stale_files(self, image_store: ImageStore):
        directory = image_store.channel_dir("general")
        for name in ("old.png", "kept.png"):
            (directory / name).write_bytes(b"x")
        image_store.save_infos("general", [info("old.png"), info("kept.png")])

        updated = image_store.save_infos("general", [info("kept.png")], full_update=True)

        assert updated == [info("kept.png")]
        assert not (directory / "old.png").exists()
        assert (directory / "kept.png").exists()

    def test_load_missing_channel(self, image_store: ImageStore):
        assert image_store.load("nothing-here") is None

    def test_list_channels_and_all_data(self, image_store: ImageStore):
        image_store.save_infos("b-channel", [info("b.png")])
        image_store.save_infos("a-channel", [info("a.png")])

        assert image_store.list_channels() == ["a-channel", "b-channel"]
        assert image_store.all_data() == [info("a.png"), info("b.png")]

    def test_data_file_layout(self, image_store: ImageStore, tmp_path: Path):
        image_store.save_infos("General", [info("1.png")])

        path = tmp_path / "assets" / "general" / "general.json"
        assert json.loads(path.read_text()) == [info("1.png")]


# =============================================================================
# Mirror
# =============================================================================


async def serve_image(request: web.Request) -> web.Response:
    return web.Response(body=b"image-bytes", content_type="image/png")


async def not_found(request: web.Request) -> web.Response:
    return web.Response(status=404)


def make_image_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/files/{name}", serve_image)
    app.router.add_get("/missing/{name}", not_found)
    return app


def attachment(url: str, attachment_id: int = 20, **overrides) -> SimpleNamespace:
    data = {
        "id": attachment_id,
        "url": url,
        "filename": "photo.png",
        "content_type": "image/png",
        "width": 800,
        "height": 600,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def embed(url: str, width: int | None = 300, height: int | None = 900) -> SimpleNamespace:
    return SimpleNamespace(image=SimpleNamespace(url=url, width=width, height=height))


def message(message_id: int = 10, attachments=(), embeds=(), name: str = "General") -> SimpleNamespace:
    return SimpleNamespace(
        id=message_id,
        attachments=list(attachments),
        embeds=list(embeds),
        channel=SimpleNamespace(id=1, name=name),
    )


class FakeChannel:
    def __init__(self, name: str, messages: list) -> None:
        self.name = name
        self.id = 1
        self._messages = messages

    async def history(self, limit=None):
        for msg in self._messages:
            yield msg


class TestImageMirror:
    @pytest.mark.asyncio
    async def test_mirrors_attachments_and_embeds(self, image_store: ImageStore):
        async with TestServer(make_image_app()) as server:
            msg = message(
                attachments=[attachment(str(server.make_url("/files/photo.png")))],
                embeds=[embed(str(server.make_url("/files/embedded.jpg")))],
            )

            infos = await ImageMirror(image_store).mirror_message(msg)

        assert infos == [
            {"url": f"{BASE_URL}/assets/general/10_20.png", "orientation": "horizontal"},
            {"url": f"{BASE_URL}/assets/general/10_embed_0.jpg", "orientation": "vertical"},
        ]
        directory = image_store.channel_dir("general")
        assert (directory / "10_20.png").read_bytes() == b"image-bytes"
        assert (directory / "10_embed_0.jpg").exists()
        assert image_store.load("general") == infos

    @pytest.mark.asyncio
    async def test_skips_non_images_unknown_sizes_and_failed_downloads(
        self, image_store: ImageStore
    ):
        async with TestServer(make_image_app()) as server:
            msg = message(
                attachments=[
                    attachment(str(server.make_url("/files/a.txt")), 1, content_type="text/plain"),
                    attachment(str(server.make_url("/files/b.png")), 2, width=None),
                    attachment(str(server.make_url("/missing/c.png")), 3),
                ],
            )

            infos = await ImageMirror(image_store).mirror_message(msg)

        assert infos == []
        assert image_store.load("general") is None

    @pytest.mark.asyncio
    async def test_rescan_replaces_channel_index(self, image_store: ImageStore):
        directory = image_store.channel_dir("general")
        (directory / "stale.png").write_bytes(b"old")
        image_store.save_infos("general", [info("stale.png")])

        async with TestServer(make_image_app()) as server:
            url = str(server.make_url("/files/photo.png"))
            channel = FakeChannel(
                "general",
                [message(1, [attachment(url, 5)]), message(2, [attachment(url, 6, width=100)])],
            )

            infos = await ImageMirror(image_store).rescan_channel(channel)

        assert [i["url"].rsplit("/", 1)[-1] for i in infos] == ["1_5.png", "2_6.png"]
        assert [i["orientation"] for i in infos] == ["horizontal", "vertical"]
        assert not (directory / "stale.png").exists()
        assert image_store.load("general") == infos
