import json
import logging
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from buildbridge import config as app_config
from buildbridge.buildbot.model import Build, Builder
from buildbridge.model import BuildbotOptions

logger = logging.getLogger("buildbridge")


def base_url(options: BuildbotOptions) -> URL:
    return URL.build(
        scheme="https" if options.secure else "http",
        host=options.host,
        port=options.port,
    )


class BuildBot:
    session: aiohttp.ClientSession
    options: BuildbotOptions

    call_count: int

    def __init__(self, session: aiohttp.ClientSession, options: BuildbotOptions):
        self.session = session
        self.options = options
        self.call_count = 0

    @property
    def url(self) -> URL:
        return base_url(self.options)

    def _auth(self) -> Optional[aiohttp.BasicAuth]:
        if self.options.change_hook_username is None:
            return None
        return aiohttp.BasicAuth(
            self.options.change_hook_username,
            self.options.change_hook_password or "",
        )

    async def send_changes(
        self,
        pull_request_id: int,
        revision: str,
        author: str,
        project: str,
        repository: str,
        category: str,
        branch: str,
        nickname: Optional[str] = None,
    ) -> None:
        """Submit a change through the base change hook.

        The properties are attached to the resulting build, which is how a
        finished build is matched back to its pull request.
        """
        properties = {
            "pull-request-id": pull_request_id,
            "revision": revision,
            "github-nickname": nickname or author,
        }
        data = {
            "comments": f"Pull request #{pull_request_id}",
            "author": author,
            "revision": revision,
            "branch": branch,
            "category": category,
            "project": project,
            "repository": repository,
            "properties": json.dumps(properties),
        }
        url = self.url.with_path(self.options.change_hook_path)

        if app_config.DRY_RUN:
            logger.info("Dry run, not sending changes to %s: %s", url, data)
            return

        self.call_count += 1
        logger.debug("Sending changes to %s", url)
        async with self.session.post(url, data=data, auth=self._auth()) as resp:
            resp.raise_for_status()

    async def _get_json(self, path: str) -> Dict[str, Any]:
        self.call_count += 1
        url = self.url.with_path(path)
        logger.debug("Get %s", url)
        async with self.session.get(url) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)

    async def get_builder(self, builder_name: Optional[str] = None) -> Builder:
        name = builder_name or self.options.builder_name
        return Builder.model_validate(await self._get_json(f"/json/builders/{name}"))

    async def get_build(self, number: int, builder_name: Optional[str] = None) -> Build:
        name = builder_name or self.options.builder_name
        return Build.model_validate(
            await self._get_json(f"/json/builders/{name}/builds/{number}")
        )
