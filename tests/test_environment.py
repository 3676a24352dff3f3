import pytest

from mjshell.environment import Environment


def make_env():
    return Environment.from_strings(["PATH=/bin:/usr/bin", "HOME=/home/user", "B=x=y"])


def test_from_strings_splits_at_first_equals():
    env = make_env()
    assert env.get("B") == "x=y"
    assert env.get("PATH") == "/bin:/usr/bin"


def test_from_strings_empty_value():
    env = Environment.from_strings(["EMPTY="])
    assert "EMPTY" in env
    assert env.get("EMPTY") == ""


def test_from_strings_without_equals_raises():
    with pytest.raises(ValueError):
        Environment.from_strings(["NOVALUE"])


def test_get_missing_is_empty_string():
    assert make_env().get("MISSING") == ""


def test_set_existing_keeps_position():
    env = make_env()
    before = list(env)
    env.set("PATH", "/opt/bin")
    assert list(env) == before
    assert env.get("PATH") == "/opt/bin"


def test_set_new_key_appends():
    env = make_env()
    env.set("NEW", "v")
    assert list(env)[-1] == "NEW"
    assert len(env) == 4


def test_unset_removes_and_ignores_missing():
    env = make_env()
    env.unset("HOME")
    assert "HOME" not in env
    assert list(env) == ["PATH", "B"]
    env.unset("HOME")
    assert list(env) == ["PATH", "B"]


def test_copy_is_independent():
    env = make_env()
    dup = env.copy()
    dup.set("PATH", "changed")
    dup.unset("B")
    assert env.get("PATH") == "/bin:/usr/bin"
    assert "B" in env
    assert dup.to_strings() != env.to_strings()


def test_sorted_items_ordered_by_key():
    env = make_env()
    keys = [key for key, _ in env.sorted_items()]
    assert keys == sorted(env)
    assert dict(env.sorted_items()) == dict(env.items())


def test_sorted_items_does_not_reorder_environment():
    env = make_env()
    before = list(env)
    env.sorted_items()
    assert list(env) == before


def test_to_strings_round_trip():
    entries = ["PATH=/bin:/usr/bin", "HOME=/home/user", "B=x=y"]
    env = Environment.from_strings(entries)
    assert env.to_strings() == entries
    assert Environment.from_strings(env.to_strings()).to_strings() == entries


def test_init_from_mapping_and_pairs_agree():
    from_map = Environment({"A": "1", "B": "2"})
    from_pairs = Environment([("A", "1"), ("B", "2")])
    assert from_map.to_strings() == from_pairs.to_strings()
    assert Environment().to_strings() == []