"""Result comment rendering.

Templates come from the options file and use Jinja2 placeholders such as
``{{ branch }}`` or ``{{ build_url }}``. They are rendered in a sandbox since
the options file is not trusted to run arbitrary code.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import random
from typing import Optional, Sequence

from jinja2.sandbox import SandboxedEnvironment

from buildbridge.buildbot.api import base_url
from buildbridge.model import BuildbotOptions, TemplateOptions

_env = SandboxedEnvironment(autoescape=False, keep_trailing_newline=True)


class BuildStatus(str, Enum):
    success = "success"
    failure = "failure"


@dataclass
class CommentFields:
    branch: Optional[str]
    blame: Optional[str]
    nickname: Optional[str]
    number: int
    builder_name: str
    build_url: str


def classify_build(text: str, marker: str = "failed") -> BuildStatus:
    # substring heuristic, Buildbot gives no structured outcome in the text
    if marker.lower() in text.lower():
        return BuildStatus.failure
    return BuildStatus.success


def select_image(
    pool: Sequence[str], rng: Optional[random.Random] = None
) -> Optional[str]:
    if len(pool) == 0:
        return None
    rng = rng or random
    return pool[rng.randint(0, len(pool) - 1)]


def build_url(options: BuildbotOptions, builder_name: str, number: int) -> str:
    return str(base_url(options).with_path(f"/builders/{builder_name}/builds/{number}"))


def render_comment(
    status: BuildStatus,
    templates: TemplateOptions,
    fields: CommentFields,
    rng: Optional[random.Random] = None,
) -> str:
    if status == BuildStatus.failure:
        template = templates.comment_failure
        pool = templates.images_failure
    else:
        template = templates.comment_success
        pool = templates.images_success

    context = asdict(fields)
    context["status"] = status.value
    context["image"] = select_image(pool, rng)

    return _env.from_string(template).render(**context)
