"""Repost detection for links pasted into chat."""

from __future__ import annotations

import inspect
import logging
import re
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias
from urllib.parse import urlsplit

from ..constants import REPOST_WINDOW_SECONDS
from ..logs.logger import logger
from ..storage.models import LinkPost

if TYPE_CHECKING:  # pragma: no cover
    from ..irc.models import MessageEvent
    from ..storage.protocols import LinkPostStore

LINK_MARKER = "https://"
_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True, slots=True)
class RepostNotice:
    link: str
    original_poster: str
    first_seen: float  # unix seconds
    elapsed_seconds: float


RepostNotifier: TypeAlias = "Callable[[MessageEvent, RepostNotice], Awaitable[object] | object]"


def extract_link(message: str) -> str | None:
    """First ``https://`` link in the message, up to the next whitespace."""
    start = message.find(LINK_MARKER)
    if start == -1:
        return None
    match = _WHITESPACE.search(message, start)
    return message[start : match.start()] if match else message[start:]


def _normalize_domain(domain: str) -> str:
    return domain.strip().lower().lstrip(".")


class LinkDedupCache:
    """Flags links a different user already posted in the same room.

    Entries live in the link-post store for ``window_seconds``. Expired
    entries are swept each time a link is seen; there is no timer.
    """

    def __init__(
        self,
        store: LinkPostStore,
        *,
        window_seconds: float = REPOST_WINDOW_SECONDS,
        excluded_domains: Iterable[str] = (),
        notifier: RepostNotifier | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.window_seconds = window_seconds
        self.excluded_domains = frozenset(
            d for d in (_normalize_domain(x) for x in excluded_domains) if d
        )
        self.notifier = notifier
        self._clock = clock

    def is_excluded(self, link: str) -> bool:
        host = (urlsplit(link).hostname or "").lower()
        if not host:
            return False
        return any(host == d or host.endswith(f".{d}") for d in self.excluded_domains)

    async def process(self, event: MessageEvent) -> RepostNotice | None:
        link = extract_link(event.message)
        if link is None or self.is_excluded(link):
            return None

        now = self._clock()
        swept = await self.store.delete_link_posts_older_than(now - self.window_seconds)
        if swept:
            logger.log_event("repost", "swept", level=logging.DEBUG, count=swept)

        post, created = await self.store.find_or_create_link_post(
            LinkPost(
                room_id=event.room_id,
                link=link,
                poster_id=event.user_id,
                poster_name=event.user_name,
                posted_at=now,
            )
        )
        if created or post.poster_id == event.user_id:
            return None

        notice = RepostNotice(
            link=link,
            original_poster=post.poster_name,
            first_seen=post.posted_at,
            elapsed_seconds=max(0.0, now - post.posted_at),
        )
        logger.log_event(
            "repost",
            "detected",
            channel=event.channel,
            author=event.user_name,
            original_poster=post.poster_name,
            link=link,
        )
        if self.notifier is not None:
            result = self.notifier(event, notice)
            if inspect.isawaitable(result):
                await result
        return notice

    async def __call__(self, event: MessageEvent) -> RepostNotice | None:
        return await self.process(event)
