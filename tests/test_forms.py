from __future__ import annotations

import pytest

from temperious_manager.errors import ClientValidationError
from temperious_manager.forms import LocationForm


def test_parse_converts_text_inputs_to_numbers():
    form = LocationForm(name=" Berlin ", lat="52.5", lon="13.4", threshold="30", notify="  ")
    assert form.parse() == {"name": "Berlin", "lat": 52.5, "lon": 13.4, "threshold": 30}


def test_parse_keeps_notify_when_given():
    form = LocationForm(name="Oslo", lat=59.9, lon=10.7, threshold=-5, notify=" ops@example.com ")
    assert form.parse()["notify"] == "ops@example.com"


def test_parse_collects_every_bad_field():
    form = LocationForm(name="B", lat=100, lon=0, threshold=1)
    with pytest.raises(ClientValidationError) as exc:
        form.parse()
    assert set(exc.value.errors) == {"name", "lat"}
    assert "Latitude must be between -90 and 90" in str(exc.value)


def test_empty_numeric_input_is_rejected_not_zero():
    form = LocationForm(name="Berlin", lat="", lon="13.4", threshold="abc")
    with pytest.raises(ClientValidationError) as exc:
        form.parse()
    assert set(exc.value.errors) == {"lat", "threshold"}


def test_from_record_fills_blanks_for_missing_fields():
    form = LocationForm.from_record({"name": "Berlin", "lat": 52.5, "lon": 13.4, "threshold": 28})
    assert form.threshold == 28
    assert form.notify == ""
    assert not form.is_blank()
    assert LocationForm().is_blank()


def test_from_mapping_ignores_unknown_keys():
    form = LocationForm.from_mapping({"name": "Berlin", "lat": 1, "lon": 2, "threshold": 3, "daysAhead": 2})
    assert form.parse() == {"name": "Berlin", "lat": 1, "lon": 2, "threshold": 3}


def test_huge_integer_text_parses_instead_of_overflowing():
    form = LocationForm(name="Berlin", lat="52.5", lon="13.4", threshold="1" + "0" * 400)
    assert form.parse()["threshold"] == 10 ** 400


def test_overflowing_float_text_is_a_field_error():
    form = LocationForm(name="Berlin", lat="52.5", lon="13.4", threshold="1e400")
    with pytest.raises(ClientValidationError) as exc:
        form.parse()
    assert set(exc.value.errors) == {"threshold"}


@pytest.mark.parametrize("text", ["1_000", "0030", "+2", ".5", "0x1f", "nan", "inf", "1,5", "--3"])
def test_only_plain_decimal_text_counts_as_number(text):
    form = LocationForm(name="Berlin", lat="52.5", lon="13.4", threshold=text)
    with pytest.raises(ClientValidationError) as exc:
        form.parse()
    assert "threshold" in exc.value.errors


@pytest.mark.parametrize("text, value", [(" 30 ", 30), ("-0.5", -0.5), ("2e1", 20.0), ("0", 0)])
def test_plain_decimal_variants(text, value):
    form = LocationForm(name="Berlin", lat="52.5", lon="13.4", threshold=text)
    assert form.parse()["threshold"] == value
