import pytest

from app.utils import canonical_json, decode_value, encode_value, normalize_profile_id


def test_encode_value_keeps_unicode():
    assert encode_value(["Amélie"]) == '["Amélie"]'


def test_canonical_json_ignores_key_order():
    assert canonical_json({"b": 1, "a": 2}) == canonical_json({"a": 2, "b": 1})


def test_decode_value_rejects_garbage():
    with pytest.raises(ValueError):
        decode_value("[1, 2")


def test_normalize_profile_id():
    assert normalize_profile_id(" movie-fan_01 ") == "movie-fan_01"
    with pytest.raises(ValueError):
        normalize_profile_id("../etc/passwd")
