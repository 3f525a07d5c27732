from buildbridge.buildbot.model import Build, Builder


def make_build_payload() -> dict:
    return {
        "builderName": "linux",
        "number": 17,
        "text": ["build", "successful"],
        "blame": ["alice"],
        "results": 0,
        "properties": [
            ["branch", "feature", "Build"],
            ["pull-request-id", 42, "Change"],
            ["revision", "abc123", "Change"],
            ["github-nickname", "octocat", "Change"],
        ],
        "sourceStamp": {"branch": "feature", "revision": "abc123"},
        "steps": [],
        "times": [1700000000.0, 1700000300.0],
    }


def test_build_from_json_status():
    build = Build.model_validate(make_build_payload())

    assert build.builder_name == "linux"
    assert build.number == 17
    assert build.summary == "buildsuccessful"
    assert build.branch == "feature"
    assert build.get_property("pull-request-id") == 42
    assert build.get_property("github-nickname") == "octocat"
    assert build.get_property("missing") is None
    assert str(build) == "Build(linux#17)"


def test_build_without_properties():
    build = Build.model_validate({"builderName": "linux", "number": 3})

    assert build.get_property("revision") is None
    assert build.summary == ""
    assert build.branch is None


def test_builder_finished_builds():
    builder = Builder.model_validate(
        {"cachedBuilds": [5, 3, 4, 6], "currentBuilds": [6], "state": "building"}
    )
    assert builder.finished_builds == [3, 4, 5]
