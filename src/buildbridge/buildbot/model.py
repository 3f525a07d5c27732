from typing import Any, List, Optional

import pydantic


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(populate_by_name=True)


class SourceStamp(Model):
    branch: Optional[str] = None


class Build(Model):
    """A build as reported by the Buildbot 0.8 JSON status API."""

    number: int
    builder_name: str = pydantic.Field(alias="builderName")
    text: List[str] = pydantic.Field(default_factory=list)
    blame: List[str] = pydantic.Field(default_factory=list)
    # [name, value, source] triples
    properties: List[List[Any]] = pydantic.Field(default_factory=list)
    source_stamp: SourceStamp = pydantic.Field(
        default_factory=SourceStamp, alias="sourceStamp"
    )

    def get_property(self, name: str) -> Any:
        for prop in self.properties:
            if len(prop) >= 2 and prop[0] == name:
                return prop[1]
        return None

    @property
    def summary(self) -> str:
        return "".join(self.text)

    @property
    def branch(self) -> Optional[str]:
        return self.source_stamp.branch

    def __str__(self) -> str:
        return f"Build({self.builder_name}#{self.number})"


class Builder(Model):
    cached_builds: List[int] = pydantic.Field(
        default_factory=list, alias="cachedBuilds"
    )
    current_builds: List[int] = pydantic.Field(
        default_factory=list, alias="currentBuilds"
    )

    @property
    def finished_builds(self) -> List[int]:
        running = set(self.current_builds)
        return sorted(n for n in self.cached_builds if n not in running)
