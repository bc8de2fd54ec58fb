import pytest

from respkit.utils import convert_range, to_cmd_line, to_cmd_line2, to_cmd_line3


def test_to_cmd_line():
    assert to_cmd_line("SET", "a", "b") == [b"SET", b"a", b"b"]
    assert to_cmd_line() == []


def test_to_cmd_line2():
    assert to_cmd_line2("GET", "key") == [b"GET", b"key"]
    assert to_cmd_line2("PING") == [b"PING"]


def test_to_cmd_line3_keeps_binary():
    assert to_cmd_line3("SET", b"k", b"\x00\xff") == [b"SET", b"k", b"\x00\xff"]


def test_convert_whole_range():
    assert convert_range(0, -1, 5) == (0, 5)


def test_convert_out_of_bound():
    assert convert_range(5, 6, 5) == (-1, -1)
    assert convert_range(-6, 2, 5) == (-1, -1)
    assert convert_range(0, -6, 5) == (-1, -1)


def test_convert_inverted_range_is_empty():
    assert convert_range(3, 1, 5) == (-1, -1)


def test_end_past_size_is_clamped():
    size = 5
    assert convert_range(0, 100, size)[1] == size


@pytest.mark.parametrize("size", [1, 3, 7])
def test_negative_indices_match_positive(size):
    for offset in range(1, size + 1):
        pos = size - offset
        assert convert_range(-offset, -offset, size) == convert_range(pos, pos, size)


@pytest.mark.parametrize("size", [1, 4, 9])
def test_result_within_bounds(size):
    for start in range(-size - 2, size + 2):
        for end in range(-size - 2, size + 2):
            begin, stop = convert_range(start, end, size)
            if (begin, stop) != (-1, -1):
                assert 0 <= begin <= stop <= size


def test_inclusive_end_becomes_exclusive():
    size = 10
    for end in range(size):
        assert convert_range(0, end, size) == (0, end + 1)