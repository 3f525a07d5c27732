import textwrap

import pytest

from buildbridge import config
from buildbridge.model import DEFAULT_BUILD_CACHE_SIZE, InvalidConfig, load_options

OPTIONS_YAML = textwrap.dedent(
    """
    github:
      username: buildbridge-bot
      token: from-file
      user: org
      project: repo
      repository: https://github.com/org/repo.git
    buildbot:
      host: buildbot.example.com
      port: 8010
      secure: true
      builder_name: linux
      category: pull-request
      poll_interval: 15
    general:
      trigger_string: "buildbot: build"
    templates:
      images_success:
        - https://img/ok.gif
      images_failure:
        - https://img/fail.gif
    """
)


@pytest.fixture(autouse=True)
def no_env_secrets(monkeypatch):
    monkeypatch.setattr(config, "GITHUB_TOKEN", None)
    monkeypatch.setattr(config, "GITHUB_WEBHOOK_SECRET", None)


def test_load_options(tmp_path):
    path = tmp_path / "buildbridge.yml"
    path.write_text(OPTIONS_YAML)

    options = load_options(path)

    assert options.github.token == "from-file"
    assert options.buildbot.secure
    assert options.buildbot.poll_interval == 15
    assert options.general.build_cache_size == DEFAULT_BUILD_CACHE_SIZE
    assert options.general.failure_marker == "failed"
    assert options.webhook.port == 8080
    assert options.templates.images_failure == ["https://img/fail.gif"]
    assert "{{ build_url }}" in options.templates.comment_success


def test_environment_secrets_take_precedence(tmp_path, monkeypatch):
    path = tmp_path / "buildbridge.yml"
    path.write_text(OPTIONS_YAML)
    monkeypatch.setattr(config, "GITHUB_TOKEN", "from-env")
    monkeypatch.setattr(config, "GITHUB_WEBHOOK_SECRET", "hook-secret")

    options = load_options(path)

    assert options.github.token == "from-env"
    assert options.webhook.secret == "hook-secret"


def test_default_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yml"
    path.write_text(OPTIONS_YAML)
    monkeypatch.setattr(config, "CONFIG_PATH", str(path))

    assert load_options().buildbot.builder_name == "linux"


def test_unknown_key_is_invalid(tmp_path):
    path = tmp_path / "buildbridge.yml"
    path.write_text(OPTIONS_YAML + "unknown: 1\n")

    with pytest.raises(InvalidConfig) as e:
        load_options(path)
    assert e.value.source_path == str(path)


def test_malformed_yaml_is_invalid(tmp_path):
    path = tmp_path / "buildbridge.yml"
    path.write_text("github: [unclosed\n")

    with pytest.raises(InvalidConfig) as e:
        load_options(path)
    assert e.value.source_path == str(path)


def test_missing_section_is_invalid(tmp_path):
    path = tmp_path / "buildbridge.yml"
    path.write_text("github:\n  username: bot\n")

    with pytest.raises(InvalidConfig):
        load_options(path)


def test_missing_file_is_invalid(tmp_path):
    with pytest.raises(InvalidConfig):
        load_options(tmp_path / "nope.yml")


def test_cache_size_must_be_positive(tmp_path):
    path = tmp_path / "buildbridge.yml"
    path.write_text(
        OPTIONS_YAML.replace("general:\n", "general:\n  build_cache_size: 0\n")
    )

    with pytest.raises(InvalidConfig):
        load_options(path)
