"""Correlation of comment triggers with finished Buildbot builds.

A trigger comment resolves the pull request head, records a pending entry in
the :class:`~buildbridge.store.CorrelationStore` and submits the change to
Buildbot. When the poller later reports a finished build carrying the same
pull request id and revision, the entry is marked as reported and the result
comment is posted. Outbound calls run as background tasks and only log on
failure; nothing is retried.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import random
from typing import Awaitable, Callable, Coroutine, Generic, List, Optional, Set, TypeVar

from buildbridge.buildbot.api import BuildBot
from buildbridge.buildbot.model import Build
from buildbridge.github.api import API
from buildbridge.key import is_missing, make_key
from buildbridge.metric import build_counter, comment_counter, error_counter
from buildbridge.model import Options
from buildbridge.render import CommentFields, build_url, classify_build, render_comment
from buildbridge.store import CorrelationRecord, CorrelationStore

logger = logging.getLogger("buildbridge")

T = TypeVar("T")


class BackgroundTasks:
    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine, description: str, context: str) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(
            functools.partial(self._finished, description=description, context=context)
        )
        return task

    def _finished(self, task: asyncio.Task, description: str, context: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("%s was cancelled", description)
            return
        exc = task.exception()
        if exc is not None:
            error_counter.labels(context=context).inc()
            logger.error("%s failed: %s", description, exc, exc_info=exc)
            return
        logger.debug("%s finished", description)

    async def join(self) -> None:
        # tasks may spawn further tasks while we wait
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class EventChannel(Generic[T]):
    """Fan-out of events to subscribed handlers.

    Every subscriber runs in its own task, so publishing never waits for a
    handler and a failing handler does not affect the others.
    """

    name: str

    def __init__(self, name: str, tasks: BackgroundTasks):
        self.name = name
        self._tasks = tasks
        self._subscribers: List[Callable[[T], Awaitable]] = []

    def subscribe(self, handler: Callable[[T], Awaitable]) -> None:
        self._subscribers.append(handler)

    async def publish(self, event: T) -> None:
        for handler in self._subscribers:
            self._tasks.spawn(
                handler(event),
                description=f"Handling {self.name} event {event}",
                context=self.name,
            )


class TriggerHandler:
    def __init__(
        self,
        store: CorrelationStore,
        github: API,
        buildbot: BuildBot,
        options: Options,
        tasks: BackgroundTasks,
    ):
        self.store = store
        self.github = github
        self.buildbot = buildbot
        self.options = options
        self.tasks = tasks

    async def on_trigger(self, pull_request_id: int) -> Optional[CorrelationRecord]:
        try:
            pr = await self.github.get_pull(pull_request_id)
            key = make_key(pr.number, pr.head.sha)
        except Exception as e:
            error_counter.labels(context="resolve").inc()
            logger.error(
                "Resolving pull request #%s failed: %s",
                pull_request_id,
                e,
                exc_info=True,
            )
            return None

        record = self.store.get_or_create(
            key,
            lambda: CorrelationRecord(pull_request_id=pr.number, revision=pr.head.sha),
        )

        logger.info(
            "Sending changes to buildbot for %s (key %s, branch %s)",
            pr,
            key,
            pr.head.ref,
        )
        github = self.options.github
        self.tasks.spawn(
            self.buildbot.send_changes(
                pr.number,
                pr.head.sha,
                pr.user.login,
                github.project,
                github.repository,
                self.options.buildbot.category,
                pr.head.ref,
                nickname=pr.user.login,
            ),
            description=f"Sending changes for pull request #{pr.number} ({key})",
            context="submit",
        )
        return record


class CompletionHandler:
    def __init__(
        self,
        store: CorrelationStore,
        github: API,
        options: Options,
        tasks: BackgroundTasks,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.github = github
        self.options = options
        self.tasks = tasks
        self.rng = rng

    async def on_build_completed(self, build: Build) -> bool:
        pull_request_id = build.get_property("pull-request-id")
        revision = build.get_property("revision")

        if is_missing(pull_request_id) or is_missing(revision):
            # Not triggered by us
            build_counter.labels(result="ignored").inc()
            return False

        key = make_key(pull_request_id, revision)

        if not self.store.mark_reported(key):
            build_counter.labels(result="unmatched").inc()
            logger.info(
                "No pending builds for pull request #%s (key %s)", pull_request_id, key
            )
            return False

        build_counter.labels(result="reported").inc()

        status = classify_build(build.summary, self.options.general.failure_marker)
        fields = CommentFields(
            branch=build.branch,
            blame=build.blame[0] if build.blame else None,
            nickname=build.get_property("github-nickname"),
            number=build.number,
            builder_name=build.builder_name,
            build_url=build_url(
                self.options.buildbot, build.builder_name, build.number
            ),
        )
        body = render_comment(status, self.options.templates, fields, rng=self.rng)

        logger.info(
            "Posting %s result of %s to pull request #%s",
            status.value,
            build,
            pull_request_id,
        )
        self.tasks.spawn(
            self._post_comment(pull_request_id, body),
            description=f"Posting comment to pull request #{pull_request_id} ({key})",
            context="comment",
        )
        return True

    async def _post_comment(self, pull_request_id, body: str) -> None:
        await self.github.post_comment(pull_request_id, body)
        comment_counter.inc()
        logger.info(
            "Successfully posted comment to pull request #%s: %s", pull_request_id, body
        )


class BuildBridge:
    def __init__(
        self,
        options: Options,
        github: API,
        buildbot: BuildBot,
        rng: Optional[random.Random] = None,
    ):
        self.options = options
        self.tasks = BackgroundTasks()
        self.store = CorrelationStore(options.general.build_cache_size)

        self.triggers: EventChannel[int] = EventChannel("trigger", self.tasks)
        self.builds: EventChannel[Build] = EventChannel("build", self.tasks)

        self.trigger_handler = TriggerHandler(
            self.store, github, buildbot, options, self.tasks
        )
        self.completion_handler = CompletionHandler(
            self.store, github, options, self.tasks, rng=rng
        )

        self.triggers.subscribe(self.trigger_handler.on_trigger)
        self.builds.subscribe(self.completion_handler.on_build_completed)

    async def join(self) -> None:
        await self.tasks.join()
