from pathlib import Path
from typing import List, Optional, Union
import io

from jinja2 import TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment
import pydantic
import yaml

from buildbridge import config as app_config

DEFAULT_BUILD_CACHE_SIZE = 500

DEFAULT_COMMENT_SUCCESS = (
    "Build [#{{ number }}]({{ build_url }}) of `{{ branch }}` on "
    "{{ builder_name }} succeeded, @{{ nickname }}.\n\n![success]({{ image }})"
)
DEFAULT_COMMENT_FAILURE = (
    "Build [#{{ number }}]({{ build_url }}) of `{{ branch }}` on "
    "{{ builder_name }} failed, @{{ nickname }} (blame: {{ blame }}).\n\n"
    "![failure]({{ image }})"
)


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="forbid")


class GitHubOptions(Model):
    username: str
    token: Optional[str] = None
    user: str
    project: str
    repository: str


class BuildbotOptions(Model):
    host: str
    port: int = 8010
    secure: bool = False
    builder_name: str
    category: str = "pull-request"
    poll_interval: float = 30
    change_hook_path: str = "/change_hook/base"
    change_hook_username: Optional[str] = None
    change_hook_password: Optional[str] = None


class GeneralOptions(Model):
    trigger_string: str = "buildbot: build"
    build_cache_size: int = pydantic.Field(DEFAULT_BUILD_CACHE_SIZE, gt=0)
    failure_marker: str = "failed"


class WebhookOptions(Model):
    host: str = "0.0.0.0"
    port: int = 8080
    secret: Optional[str] = None


class TemplateOptions(Model):
    comment_success: str = DEFAULT_COMMENT_SUCCESS
    comment_failure: str = DEFAULT_COMMENT_FAILURE
    images_success: List[str] = pydantic.Field(default_factory=list)
    images_failure: List[str] = pydantic.Field(default_factory=list)

    @pydantic.field_validator("comment_success", "comment_failure")
    @classmethod
    def validate_template(cls, value: str) -> str:
        try:
            SandboxedEnvironment().parse(value)
        except TemplateSyntaxError as e:
            raise ValueError(f"Invalid comment template: {e}")
        return value


class Options(Model):
    github: GitHubOptions
    buildbot: BuildbotOptions
    general: GeneralOptions = pydantic.Field(default_factory=GeneralOptions)
    webhook: WebhookOptions = pydantic.Field(default_factory=WebhookOptions)
    templates: TemplateOptions = pydantic.Field(default_factory=TemplateOptions)


class InvalidConfig(Exception):
    source_path: str

    def __init__(self, *args, **kwargs):
        self.source_path = kwargs.pop("source_path")
        super().__init__(*args, **kwargs)


def load_options(path: Union[str, Path, None] = None) -> Options:
    """Read the YAML options file and apply secrets from the environment.

    ``GITHUB_TOKEN`` and ``GITHUB_WEBHOOK_SECRET`` take precedence over the
    values in the file so that secrets can stay out of it.
    """
    path = Path(path or app_config.CONFIG_PATH)
    try:
        with open(path) as fh:
            buf = io.StringIO(fh.read())
    except OSError as e:
        raise InvalidConfig(str(e), source_path=str(path)) from e

    try:
        data = yaml.safe_load(buf) or {}
    except yaml.YAMLError as e:
        raise InvalidConfig(str(e), source_path=str(path)) from e

    try:
        options = Options.model_validate(data)
    except pydantic.ValidationError as e:
        raise InvalidConfig(str(e), source_path=str(path)) from e

    if app_config.GITHUB_TOKEN is not None:
        options.github.token = app_config.GITHUB_TOKEN
    if app_config.GITHUB_WEBHOOK_SECRET is not None:
        options.webhook.secret = app_config.GITHUB_WEBHOOK_SECRET

    return options
