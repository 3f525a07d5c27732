import pytest

from buildbridge.key import MissingKeyField, is_missing, make_key


def test_key_is_deterministic():
    assert make_key(42, "abc123") == make_key(42, "abc123")


def test_key_agrees_between_webhook_and_build_properties():
    # webhook payloads carry ints, buildbot echoes properties back as strings
    assert make_key(42, "abc123") == make_key("42", "abc123")
    assert make_key(42, "abc123") == make_key(" 42 ", "abc123\n")


def test_distinct_pairs_do_not_collide():
    keys = {
        make_key(pr, rev)
        for pr in (1, 2, 12, 42)
        for rev in ("abc123", "def456", "2abc123")
    }
    assert len(keys) == 12


@pytest.mark.parametrize(
    "pull_request_id, revision",
    [(None, "abc123"), ("", "abc123"), (42, None), (42, ""), (42, "   ")],
)
def test_missing_fields_are_rejected(pull_request_id, revision):
    with pytest.raises(MissingKeyField):
        make_key(pull_request_id, revision)


def test_is_missing():
    assert is_missing(None)
    assert is_missing("")
    assert is_missing("  ")
    assert not is_missing(0)
    assert not is_missing("abc")
