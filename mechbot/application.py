"""Application wiring: builds every component and owns their lifecycle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import aiohttp

from .api.app_token import AppTokenManager
from .api.twitch import TwitchAPI
from .commands.builtin import BuiltinContext, register_builtin_commands, seed_defaults
from .commands.registry import CommandRegistry
from .commands.visibility import is_channel_silenced
from .config.model import BotSettings
from .constants import HTTP_REQUEST_TIMEOUT_SECONDS
from .errors.handling import log_error
from .errors.internal import InternalError
from .irc.dispatcher import IRCDispatcher
from .irc.models import MessageEvent
from .irc.session import IRCSession
from .irc.transport import Transport, WebSocketTransport
from .links.dedup import LinkDedupCache, RepostNotice
from .logs.logger import logger
from .storage.memory import MemoryStore
from .storage.protocols import Store
from .storage.sqlite import SQLiteStore
from .utils import format_elapsed


class BotApplication:
    """Holds the shared resources of one running bot.

    ``create()`` only constructs; nothing touches the network or disk until
    ``start()``.
    """

    def __init__(self, settings: BotSettings) -> None:
        self.settings = settings
        self.http: aiohttp.ClientSession | None = None
        self.token_manager: AppTokenManager | None = None
        self.api: TwitchAPI | None = None
        self.store: Store | None = None
        self.registry: CommandRegistry | None = None
        self.dedup: LinkDedupCache | None = None
        self.session: IRCSession | None = None
        self.dispatcher: IRCDispatcher | None = None
        self._started = False
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(
        cls,
        settings: BotSettings,
        *,
        store: Store | None = None,
        http: aiohttp.ClientSession | None = None,
        transport_factory: Callable[[], Transport] | None = None,
    ) -> BotApplication:
        app = cls(settings)
        logging.debug("🧪 Creating bot application")
        app.http = http or aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=HTTP_REQUEST_TIMEOUT_SECONDS)
        )
        app.token_manager = AppTokenManager(app.http, settings.client_id, settings.client_secret)
        app.api = TwitchAPI(app.http, settings.client_id, app.token_manager)
        if store is None:
            store = (
                MemoryStore()
                if settings.database_path == ":memory:"
                else SQLiteStore(settings.database_path)
            )
        app.store = store

        app.registry = CommandRegistry(
            store,
            store,
            app.api,
            command_prefix=settings.command_prefix,
            argument_prefix=settings.argument_prefix,
        )
        factory = transport_factory or (lambda: WebSocketTransport(settings.irc_url))
        app.session = IRCSession(
            settings.bot_nick,
            settings.bot_token,
            store,
            capabilities=settings.capabilities,
            transport_factory=factory,
            reconnect_delay=settings.reconnect_delay_seconds,
        )
        app.dedup = LinkDedupCache(
            store,
            window_seconds=settings.repost_window_seconds,
            excluded_domains=settings.repost_excluded_domains,
            notifier=app._announce_repost,
        )
        app.dispatcher = IRCDispatcher(
            app.session,
            store,
            consumers=(app.registry.dispatch, app.dedup.process),
            ignored_users=settings.ignored_users,
        )
        register_builtin_commands(
            app.registry,
            BuiltinContext(
                api=app.api,
                channels=store,
                users=store,
                chat=app.session,
                registry=app.registry,
                source_url=settings.source_url,
            ),
        )
        return app

    async def _announce_repost(self, event: MessageEvent, notice: RepostNotice) -> None:
        if self.session is None or self.api is None or self.store is None:
            raise RuntimeError("Bot application not created")
        try:
            if await is_channel_silenced(event.room_id, self.store, self.api):
                return
        except InternalError as e:
            log_error("Live check before repost notice failed", e, {"channel": event.channel})
            return
        await self.session.send_message(
            event.channel,
            f"IE Repost! @{event.display_name} {notice.original_poster} posted that "
            f"{format_elapsed(notice.elapsed_seconds)} ago",
        )

    # --------------------------- Lifecycle -------------------------- #
    async def start(self) -> None:
        """Open the store, seed defaults and start token upkeep."""
        async with self._lock:
            if self._started:
                return
            if self.token_manager is None or self.store is None:
                raise RuntimeError("Bot application not created")
            await self.store.open()
            await seed_defaults(
                self.store,
                self.store,
                owner_id=self.settings.owner_id,
                bot_id=self.settings.bot_id,
                bot_nick=self.settings.bot_nick,
            )
            await self.token_manager.start()
            self._started = True
            logger.log_event("app", "started", user=self.settings.bot_nick)

    async def run(self) -> None:
        """Start and pump chat until ``shutdown()`` closes the session."""
        await self.start()
        if self.session is None:
            raise RuntimeError("Chat session not initialized")
        await self.session.run()

    async def shutdown(self) -> None:
        async with self._lock:
            logging.info("🔻 Bot shutdown initiated")
            if self.session is not None:
                await self.session.close()
            if self.dispatcher is not None:
                await self.dispatcher.drain()
            await self._stop_token_manager()
            await self._close_store()
            await self._close_http_session()
            self._started = False
            logging.info("✅ Bot shutdown complete")

    async def _stop_token_manager(self) -> None:
        if not self.token_manager:
            return
        try:
            await self.token_manager.stop()
        except (RuntimeError, OSError, ValueError) as e:
            logging.error(f"💥 Error stopping token manager: {str(e)}")

    async def _close_store(self) -> None:
        if self.store is None:
            return
        try:
            await self.store.close()
        except InternalError as e:
            log_error("Closing store failed", e)

    async def _close_http_session(self) -> None:
        if not self.http:
            return
        try:
            await self.http.close()
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logging.error(f"💥 Error closing HTTP session: {str(e)}")
        finally:
            self.http = None
