"""HTTP server: schedule CRUD API, mirrored image data and static assets"""

import hmac
import json
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from aiohttp import web
from pydantic import ValidationError

from ccbot.core.rate_limiter import RateLimiter
from ccbot.scheduling.errors import ConfigMalformed
from ccbot.shared.models.schedule import ScheduleDefinition
from ccbot.shared.repositories import ImageStore, ScheduleStore

if TYPE_CHECKING:
    from discord.ext.commands import Bot

logger = logging.getLogger(__name__)


def _ok(status: int = 200, **payload: Any) -> web.Response:
    return web.json_response({"success": True, **payload}, status=status)


def _fail(status: int, error: str) -> web.Response:
    return web.json_response({"success": False, "error": error}, status=status)


class ApiServer:
    """aiohttp application served from inside the bot process"""

    def __init__(
        self,
        store: ScheduleStore,
        image_store: ImageStore,
        bot: "Bot | None" = None,
        host: str = "0.0.0.0",
        port: int = 4000,
        api_token: str = "",
        cors_origins: Sequence[str] = ("*",),
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.store = store
        self.image_store = image_store
        self.bot: Any = bot
        self.host = host
        self.port = port
        self.api_token = api_token
        self.cors_origins = list(cors_origins)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.app = web.Application(middlewares=[self.cors_middleware, self.rate_limit_middleware])
        self.runner: web.AppRunner | None = None
        self._start_time: float = time.time()
        self._setup_routes()

    def _setup_routes(self) -> None:
        """Configure HTTP routes"""
        router = self.app.router
        router.add_get("/", self.handle_root)
        router.add_get("/health", self.handle_health)

        router.add_get("/api/schedules", self.list_schedules)
        router.add_post("/api/schedules", self.create_schedule)
        router.add_put("/api/schedules/{index}", self.update_schedule)
        router.add_delete("/api/schedules/{index}", self.delete_schedule)

        router.add_get("/assets", self.list_asset_channels)
        router.add_get("/assets/{channel}", self.get_channel_data)
        router.add_get("/all-data", self.get_all_data)

        # Registered last so /assets/{channel} wins for single-segment paths
        self.image_store.assets_dir.mkdir(parents=True, exist_ok=True)
        router.add_static("/assets/", self.image_store.assets_dir)

    # ==================== Middleware ====================

    @web.middleware
    async def cors_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        """Answer preflights and add CORS headers to every response"""
        if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
            response: web.StreamResponse = web.Response(status=204)
        else:
            try:
                response = await handler(request)
            except web.HTTPException as exc:
                self._apply_cors(request, exc)
                raise
        self._apply_cors(request, response)
        return response

    @web.middleware
    async def rate_limit_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        """Cap requests per client address; /health is exempt for liveness checks"""
        if request.path == "/health":
            return await handler(request)

        client = request.remote or "unknown"
        if not self.rate_limiter.allow(client):
            logger.warning(f"Rate limit exceeded by {client} on {request.method} {request.path}")
            return web.json_response(
                {"error": "Too many requests, please try again later."},
                status=429,
                headers={"Retry-After": str(self.rate_limiter.retry_after(client))},
            )
        return await handler(request)

    def _apply_cors(self, request: web.Request, response: web.StreamResponse) -> None:
        origin = request.headers.get("Origin")
        if "*" in self.cors_origins:
            response.headers["Access-Control-Allow-Origin"] = "*"
        elif origin and origin in self.cors_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        else:
            return
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

    # ==================== Service ====================

    async def handle_root(self, request: web.Request) -> web.Response:
        """Root endpoint - minimal service info"""
        return web.json_response(
            {
                "service": "ccbot",
                "status": "running",
                "uptime_seconds": int(time.time() - self._start_time),
            }
        )

    async def handle_health(self, request: web.Request) -> web.Response:
        """Health check - always 200 (liveness)"""
        ready = self.bot is not None and self.bot.is_ready()
        return web.json_response({"status": "healthy" if ready else "starting", "ready": ready})

    # ==================== Schedules ====================

    async def list_schedules(self, request: web.Request) -> web.Response:
        try:
            definitions = self.store.list_all()
        except ConfigMalformed as e:
            logger.error(f"Failed to read schedules: {e}")
            return _fail(500, str(e))
        return _ok(data=[d.to_json() for d in definitions])

    async def create_schedule(self, request: web.Request) -> web.Response:
        denied = self._check_token(request)
        if denied is not None:
            return denied

        definition = await self._parse_definition(request)
        if isinstance(definition, web.Response):
            return definition

        try:
            index = self.store.create(definition)
        except ConfigMalformed as e:
            return _fail(500, str(e))
        return _ok(201, index=index, data=definition.to_json())

    async def update_schedule(self, request: web.Request) -> web.Response:
        denied = self._check_token(request)
        if denied is not None:
            return denied

        index = self._parse_index(request)
        if isinstance(index, web.Response):
            return index

        definition = await self._parse_definition(request)
        if isinstance(definition, web.Response):
            return definition

        try:
            self.store.replace(index, definition)
        except IndexError as e:
            return _fail(404, str(e))
        except ConfigMalformed as e:
            return _fail(500, str(e))
        return _ok(index=index, data=definition.to_json())

    async def delete_schedule(self, request: web.Request) -> web.Response:
        denied = self._check_token(request)
        if denied is not None:
            return denied

        index = self._parse_index(request)
        if isinstance(index, web.Response):
            return index

        try:
            removed = self.store.delete(index)
        except IndexError as e:
            return _fail(404, str(e))
        except ConfigMalformed as e:
            return _fail(500, str(e))
        return _ok(index=index, data=removed.to_json())

    # ==================== Assets ====================

    async def list_asset_channels(self, request: web.Request) -> web.Response:
        return web.json_response({"channels": self.image_store.list_channels()})

    async def get_channel_data(self, request: web.Request) -> web.Response:
        channel = request.match_info["channel"]
        try:
            infos = self.image_store.load(channel)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading image data for '{channel}': {e}")
            return web.json_response({"error": "Error reading channel data"}, status=500)

        if infos is None:
            return web.json_response({"error": "Channel data not found"}, status=404)
        return web.json_response(infos)

    async def get_all_data(self, request: web.Request) -> web.Response:
        try:
            return web.json_response(self.image_store.all_data())
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading image data: {e}")
            return web.json_response({"error": "Error reading data"}, status=500)

    # ==================== Helpers ====================

    def _check_token(self, request: web.Request) -> web.Response | None:
        if not self.api_token:
            return None
        header = request.headers.get("Authorization", "")
        if hmac.compare_digest(header.encode(), f"Bearer {self.api_token}".encode()):
            return None
        logger.warning(f"Rejected unauthorized {request.method} {request.path}")
        return _fail(401, "Unauthorized")

    @staticmethod
    def _parse_index(request: web.Request) -> int | web.Response:
        try:
            return int(request.match_info["index"])
        except ValueError:
            return _fail(400, "Index must be an integer")

    @staticmethod
    async def _parse_definition(request: web.Request) -> ScheduleDefinition | web.Response:
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return _fail(400, "Request body must be JSON")
        try:
            return ScheduleDefinition.model_validate(body)
        except ValidationError as e:
            return _fail(400, str(e))

    # ==================== Lifecycle ====================

    async def start(self) -> None:
        """Start the HTTP server"""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()
            logger.info(f"HTTP server started on {self.host}:{self.port}")
        except Exception as e:
            logger.exception(f"Failed to start HTTP server: {e}")
            raise

    async def stop(self) -> None:
        """Stop the HTTP server"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("HTTP server stopped")
