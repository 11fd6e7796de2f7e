import pytest

from epon_ipact.ping import FieldError, Ping


def test_defaults():
    png = Ping()
    assert png.name == "ping"
    assert png.kind == 0
    assert png.onu_id == 0


def test_dup_is_independent_copy():
    png = Ping(onu_id=3)
    twin = png.dup()
    assert twin == png
    assert twin is not png
    twin.onu_id = 7
    assert png.onu_id == 3


def test_field_names():
    assert Ping().field_names() == ("ONU_id",)


def test_field_value_as_string_by_name_and_index():
    png = Ping(onu_id=12)
    assert png.field_value_as_string("ONU_id") == "12"
    assert png.field_value_as_string(0) == "12"


@pytest.mark.parametrize("text", ["0", "5", "-4", "2147483647"])
def test_string_round_trip(text):
    png = Ping()
    png.set_field_value_as_string("ONU_id", text)
    assert png.field_value_as_string("ONU_id") == text
    assert png.onu_id == int(text)


def test_set_by_index():
    png = Ping()
    png.set_field_value_as_string(0, "9")
    assert png.onu_id == 9


@pytest.mark.parametrize("text", ["", "abc", "1.5", "0x10"])
def test_set_rejects_non_integer(text):
    png = Ping(onu_id=2)
    with pytest.raises(FieldError):
        png.set_field_value_as_string("ONU_id", text)
    assert png.onu_id == 2


def test_set_rejects_out_of_range():
    with pytest.raises(FieldError):
        Ping().set_field_value_as_string("ONU_id", "2147483648")


@pytest.mark.parametrize("field", ["onu", "Grant", 1, -1])
def test_unknown_field(field):
    png = Ping()
    with pytest.raises(FieldError):
        png.field_value_as_string(field)
    with pytest.raises(FieldError):
        png.set_field_value_as_string(field, "1")


def test_field_error_is_value_error():
    with pytest.raises(ValueError):
        Ping().set_field_value_as_string("ONU_id", "x")