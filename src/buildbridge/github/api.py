from gidgethub.abc import GitHubAPI

from buildbridge import config as app_config
from buildbridge.github.model import PullRequest

from sanic.log import logger


class API:
    gh: GitHubAPI
    user: str
    project: str

    call_count: int

    def __init__(self, gh: GitHubAPI, user: str, project: str):
        self.gh = gh
        self.user = user
        self.project = project
        self.call_count = 0

    @property
    def repo_url(self) -> str:
        return f"/repos/{self.user}/{self.project}"

    async def get_pull(self, number: int) -> PullRequest:
        self.call_count += 1
        url = f"{self.repo_url}/pulls/{number}"
        logger.debug("Get pull %s", url)
        item = await self.gh.getitem(url)
        return PullRequest.model_validate(item)

    async def post_comment(self, number: int, body: str) -> None:
        url = f"{self.repo_url}/issues/{number}/comments"
        if app_config.DRY_RUN:
            logger.info("Dry run, not posting comment to %s:\n%s", url, body)
            return
        self.call_count += 1
        logger.debug("Posting comment to %s", url)
        await self.gh.post(url, data={"body": body})
