import asyncio
import logging
from typing import List, Optional

import cachetools

from buildbridge.buildbot.api import BuildBot
from buildbridge.buildbot.model import Build
from buildbridge.engine import EventChannel
from buildbridge.metric import error_counter

logger = logging.getLogger("buildbridge")


class BuildbotPoller:
    """Periodically lists the builder's builds and publishes finished ones.

    Builds that already existed on the first poll form the baseline and are
    never published. Published build numbers are remembered in a bounded
    window, so a build is published once even if Buildbot reports it again.
    """

    buildbot: BuildBot
    channel: EventChannel[Build]
    interval: float

    def __init__(
        self,
        buildbot: BuildBot,
        channel: EventChannel[Build],
        interval: float,
        window: int = 1000,
    ):
        self.buildbot = buildbot
        self.channel = channel
        self.interval = interval
        self._baseline: Optional[int] = None
        self._seen = cachetools.LRUCache(maxsize=window)
        self._task: Optional[asyncio.Task] = None

    async def poll(self) -> List[Build]:
        builder = await self.buildbot.get_builder()

        if self._baseline is None:
            self._baseline = max(
                builder.cached_builds + builder.current_builds, default=-1
            )
            logger.info(
                "Polling builder %s for builds after #%d",
                self.buildbot.options.builder_name,
                self._baseline,
            )
            return []

        new = [
            number
            for number in builder.finished_builds
            if number > self._baseline and number not in self._seen
        ]
        if len(new) > 0:
            logger.debug("Found %d new finished builds: %s", len(new), new)

        builds = []
        for number in new:
            build = await self.buildbot.get_build(number)
            self._seen[number] = True
            logger.info("New finished build %s", build)
            await self.channel.publish(build)
            builds.append(build)
        return builds

    async def run(self) -> None:
        logger.info("Entering poll loop, interval %.1fs", self.interval)
        while True:
            try:
                await self.poll()
            except (KeyboardInterrupt, asyncio.CancelledError):
                raise
            except Exception:
                error_counter.labels(context="poll").inc()
                logger.error("Polling buildbot encountered error", exc_info=True)

            logger.debug("Sleeping for %.1f", self.interval)
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
