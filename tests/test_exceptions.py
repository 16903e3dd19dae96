import pytest

from infinigraph.exceptions import InfiniError, vec_to_string


def test_empty_sequence_renders_as_brackets():
    assert vec_to_string([]) == "[]"


def test_int_sequence_round_trips():
    values = [2, 3, 4, 5]
    text = vec_to_string(values)
    assert text.startswith("[") and text.endswith("]")
    assert " " not in text
    assert [int(part) for part in text[1:-1].split(",")] == values


def test_single_element_has_no_separator():
    text = vec_to_string([7])
    assert "," not in text
    assert int(text[1:-1]) == 7


def test_float_values_round_trip():
    values = [0.5, 1.25, -3.0]
    text = vec_to_string(values)
    assert [float(part) for part in text[1:-1].split(",")] == values


def test_accepts_generators():
    values = [1, 2, 3]
    assert vec_to_string(v for v in values) == vec_to_string(values)


def test_bools_render_as_digits():
    text = vec_to_string([True, False])
    assert [int(part) for part in text[1:-1].split(",")] == [1, 0]


def test_infini_error_is_runtime_error():
    error = InfiniError("broken")
    assert isinstance(error, RuntimeError)
    assert "broken" in str(error)
    with pytest.raises(RuntimeError, match="broken"):
        raise error