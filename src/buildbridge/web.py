import logging

from sanic import Sanic, response, Request
import aiohttp
import cachetools
import gidgethub
from gidgethub import sansio
from sanic.log import logger
import sanic.log
from prometheus_client import core
from prometheus_client.exposition import generate_latest

from buildbridge.buildbot import BuildBot
from buildbridge.engine import BuildBridge
from buildbridge.github import create_router, make_api
from buildbridge.logger import setup_logging
from buildbridge.metric import error_counter, webhook_counter
from buildbridge.model import Options
from buildbridge.poller import BuildbotPoller


async def process_github_event(app, request) -> int:
    try:
        event = sansio.Event.from_http(
            request.headers, request.body, secret=app.ctx.options.webhook.secret
        )
    except (gidgethub.GitHubException, ValueError) as e:
        logger.warning("Rejecting webhook: %s", e)
        return 400

    webhook_counter.labels(event=event.event).inc()
    logger.debug("Dispatching event %s (%s)", event.event, event.delivery_id)

    try:
        await app.ctx.github_router.dispatch(
            event, channel=app.ctx.bridge.triggers, options=app.ctx.options
        )
    except Exception:
        error_counter.labels(context="event_dispatch").inc()
        logger.error("Exception raised when dispatching event", exc_info=True)

    return 200


def create_app(options: Options) -> Sanic:

    app = Sanic("buildbridge")

    setup_logging(logging.getLogger("buildbridge"), sanic.log.logger)

    app.ctx.options = options
    app.ctx.cache = cachetools.LRUCache(maxsize=500)
    app.ctx.github_router = create_router()

    @app.listener("before_server_start")
    async def init(app, loop):
        logger.debug("Creating aiohttp session")
        app.ctx.aiohttp_session = aiohttp.ClientSession()

        github = make_api(app.ctx.aiohttp_session, options, cache=app.ctx.cache)
        buildbot = BuildBot(app.ctx.aiohttp_session, options.buildbot)

        app.ctx.bridge = BuildBridge(options, github, buildbot)
        app.ctx.poller = BuildbotPoller(
            buildbot, app.ctx.bridge.builds, options.buildbot.poll_interval
        )
        app.ctx.poller.start()

    @app.listener("before_server_stop")
    async def shutdown(app, loop):
        logger.info("Stopping poller and waiting for outstanding requests")
        await app.ctx.poller.stop()
        await app.ctx.bridge.join()
        await app.ctx.aiohttp_session.close()

    @app.get("/status")
    async def status(request):
        logger.debug("status check")
        return response.text("ok")

    @app.route("/webhook", methods=["POST"])
    async def github(request: Request):
        logger.debug("Webhook received")
        return response.empty(await process_github_event(app, request))

    @app.get("/metrics")
    async def metrics(request):
        data = generate_latest(core.REGISTRY)
        return response.raw(data)

    return app
