from typing import Any


class MissingKeyField(ValueError):
    pass


def is_missing(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def make_key(pull_request_id: Any, revision: Any) -> str:
    """Correlation key for a pull request at a given revision.

    Pull request ids arrive as ``int`` from GitHub and as ``str`` when echoed
    back in Buildbot properties, so both are normalized through ``str``.
    """
    if is_missing(pull_request_id) or is_missing(revision):
        raise MissingKeyField(
            f"Cannot derive key from pull request {pull_request_id!r} "
            f"and revision {revision!r}"
        )
    return f"{str(pull_request_id).strip()}:{str(revision).strip()}"
