import string

from agentforge.ids import new_id


def test_new_id_prefix():
    assert new_id("task_").startswith("task_")


def test_new_id_length():
    identifier = new_id("t_")
    assert len(identifier) == 26


def test_new_id_suffix_is_lower_hex():
    suffix = new_id("run_")[len("run_"):]
    assert len(suffix) == 24
    assert set(suffix) <= set(string.hexdigits.lower())


def test_new_id_unique():
    ids = {new_id("x_") for _ in range(100)}
    assert len(ids) == 100