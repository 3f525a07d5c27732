from buildbridge.buildbot.api import BuildBot, base_url
from buildbridge.buildbot.model import Build, Builder, SourceStamp

__all__ = ["BuildBot", "Build", "Builder", "SourceStamp", "base_url"]
