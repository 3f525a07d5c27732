import aiohttp
from gidgethub import aiohttp as gh_aiohttp
from gidgethub.routing import Router
from gidgethub.sansio import Event
from sanic.log import logger

from buildbridge.github.api import API
from buildbridge.github.model import Issue, IssueComment, Repository
from buildbridge.metric import trigger_counter
from buildbridge.model import Options


def is_trigger_comment(body: str, trigger_string: str) -> bool:
    return trigger_string.lower() in body.lower()


def create_router():
    router = Router()

    @router.register("issue_comment", action="created")
    async def on_issue_comment(event: Event, channel, options: Options):
        issue = Issue.model_validate(event.data["issue"])
        comment = IssueComment.model_validate(event.data["comment"])
        logger.debug("Received comment %d on issue #%d", comment.id, issue.number)

        expected = f"{options.github.user}/{options.github.project}"
        repo = Repository.model_validate(event.data["repository"])
        if repo.full_name is not None and repo.full_name.lower() != expected.lower():
            logger.debug("Comment on %s, watching %s, skip", repo.full_name, expected)
            return

        if not issue.is_pull_request:
            logger.debug("Issue #%d is not a pull request, skip", issue.number)
            return

        if comment.user.login == options.github.username:
            logger.debug("Comment from us, skip handling")
            return

        if not is_trigger_comment(comment.body, options.general.trigger_string):
            return

        logger.info(
            "Build requested by %s on pull request #%d",
            comment.user.login,
            issue.number,
        )
        trigger_counter.inc()
        await channel.publish(issue.number)

    return router


def make_api(session: aiohttp.ClientSession, options: Options, cache=None) -> API:
    gh = gh_aiohttp.GitHubAPI(
        session,
        options.github.username,
        oauth_token=options.github.token,
        cache=cache,
    )
    return API(gh, options.github.user, options.github.project)
