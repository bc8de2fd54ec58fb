import pytest

from respkit.wildcard import ERR_END_WITH_ESCAPE, WildcardError, compile_pattern


@pytest.mark.parametrize(
    "pattern, text, expected",
    [
        ("", "", True),
        ("a", "a", True),
        ("a", "b", False),
        ("a?", "ab", True),
        ("a?", "a", False),
        ("a?", "abb", False),
        ("a?", "bb", False),
        ("a*", "ab", True),
        ("a*", "a", True),
        ("a*", "abb", True),
        ("a*", "bb", False),
        ("a[ab[]", "ab", True),
        ("a[ab[]", "aa", True),
        ("a[ab[]", "a[", True),
        ("a[ab[]", "abb", False),
        ("a[ab[]", "bb", False),
        ("h[a-c]llo", "hallo", True),
        ("h[a-c]llo", "hbllo", True),
        ("h[a-c]llo", "hcllo", True),
        ("h[a-c]llo", "hdllo", False),
        ("h[a-c]llo", "hello", False),
        ("h[^ab]llo", "hallo", False),
        ("h[^ab]llo", "hbllo", False),
        ("h[^ab]llo", "hcllo", True),
        ("[^ab]c", "abc", False),
        ("[^ab]c", "1c", True),
        ("1^2", "1^2", True),
        (r"\[^1]2", "[^1]2", True),
        ("^1", "^1", True),
        (r"\\\\", r"\\", True),
        ("\\*", "*", True),
        ("\\*", "a", False),
    ],
)
def test_wildcard(pattern, text, expected):
    assert compile_pattern(pattern).is_match(text) is expected


def test_trailing_escape_is_error():
    with pytest.raises(WildcardError) as info:
        compile_pattern("\\")
    assert str(info.value) == ERR_END_WITH_ESCAPE


def test_unbalanced_group_is_error():
    with pytest.raises(WildcardError):
        compile_pattern("a(")


def test_regex_metacharacters_are_literal():
    pattern = compile_pattern("a.b+c$")
    assert pattern.is_match("a.b+c$")
    assert not pattern.is_match("axbbc")


def test_no_match_before_trailing_newline():
    assert not compile_pattern("abc").is_match("abc\n")


def test_star_matches_any_key():
    pattern = compile_pattern("user:*")
    assert [k for k in ["user:1", "user:", "item:1"] if pattern.is_match(k)] == [
        "user:1",
        "user:",
    ]