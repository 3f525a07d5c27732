import asyncio
from contextlib import asynccontextmanager
import logging
from pathlib import Path
from typing import Optional

import aiohttp
import cachetools
from tabulate import tabulate
import typer

from buildbridge.buildbot import BuildBot
from buildbridge.engine import BuildBridge
from buildbridge.github import make_api
from buildbridge.logger import setup_logging
from buildbridge.model import InvalidConfig, Options, load_options


logger = logging.getLogger("buildbridge")

app = typer.Typer()
httpcache = cachetools.LRUCache(maxsize=500)


@app.callback()
def init():
    setup_logging(logger)


def get_options(path: Optional[Path]) -> Options:
    try:
        return load_options(path)
    except InvalidConfig as e:
        logger.error("Invalid options file %s:\n%s", e.source_path, e)
        raise typer.Exit(code=1)


@asynccontextmanager
async def bridge_for(options: Options):
    async with aiohttp.ClientSession() as session:
        github = make_api(session, options, cache=httpcache)
        buildbot = BuildBot(session, options.buildbot)
        bridge = BuildBridge(options, github, buildbot)
        try:
            yield bridge
        finally:
            await bridge.join()


@app.command()
def serve(config_file: Optional[Path] = typer.Option(None, "--config", "-c")):
    from buildbridge.web import create_app

    options = get_options(config_file)
    web = create_app(options)
    web.run(
        host=options.webhook.host,
        port=options.webhook.port,
        single_process=True,
        access_log=False,
    )


@app.command()
def trigger(
    number: int, config_file: Optional[Path] = typer.Option(None, "--config", "-c")
):
    options = get_options(config_file)

    async def handle():
        async with bridge_for(options) as bridge:
            record = await bridge.trigger_handler.on_trigger(number)
            if record is None:
                raise typer.Exit(code=1)
            logger.info("Tracking %s", record)

    asyncio.run(handle())


@app.command()
def builds(config_file: Optional[Path] = typer.Option(None, "--config", "-c")):
    options = get_options(config_file)

    async def handle():
        async with aiohttp.ClientSession() as session:
            buildbot = BuildBot(session, options.buildbot)
            builder = await buildbot.get_builder()
            rows = []
            for number in builder.finished_builds:
                build = await buildbot.get_build(number)
                rows.append(
                    (
                        build.number,
                        build.branch,
                        build.get_property("pull-request-id"),
                        build.get_property("revision"),
                        build.summary,
                    )
                )
            typer.echo(
                tabulate(
                    rows,
                    headers=("#", "Branch", "Pull request", "Revision", "Result"),
                    tablefmt="github",
                )
            )

    asyncio.run(handle())
