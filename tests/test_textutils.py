import pytest

from mjshell.textutils import (
    filename_length,
    find_end,
    is_numeric,
    parse_int,
    remove_quotes,
    replace_span,
    split_plain,
    split_quoted,
    trim,
)


def test_split_quoted_keeps_quoted_words():
    assert split_quoted("echo 'a b' c", " ") == ["echo", "'a b'", "c"]


def test_split_quoted_pipe_inside_quotes_is_not_a_separator():
    assert split_quoted('echo "a|b" | wc', "|") == ['echo "a|b" ', " wc"]


def test_split_quoted_drops_empty_fields():
    assert split_quoted("  ls   -l  ", " ") == ["ls", "-l"]
    assert split_quoted("", " ") == []
    assert split_quoted("|||", "|") == []


def test_split_quoted_unclosed_quote_is_plain():
    assert split_quoted("a 'b c", " ") == ["a", "'b", "c"]


def test_split_quoted_rejoins_to_input_without_extra_separators():
    text = "cat file | grep 'x | y' | wc -l"
    assert "|".join(split_quoted(text, "|")) == text


def test_split_plain_ignores_quotes():
    assert split_plain("'a b'", " ") == ["'a", "b'"]
    assert split_plain("/bin::/usr/bin:", ":") == ["/bin", "/usr/bin"]


def test_trim():
    assert trim("  <>file  ", " <>") == "file"
    assert trim("<<<", "<") == ""
    assert trim("mid<dle", "<") == "mid<dle"


@pytest.mark.parametrize(
    "text, expected",
    [("  -42abc", -42), ("+7", 7), ("abc", 0), ("\t\n 15", 15), ("", 0), ("-", 0)],
)
def test_parse_int(text, expected):
    assert parse_int(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("42", True),
        ("-42", True),
        ("+0", True),
        ("", False),
        (None, False),
        ("-", False),
        ("4a", False),
        (" 4", False),
    ],
)
def test_is_numeric(text, expected):
    assert is_numeric(text) is expected


def test_remove_quotes_simple_pairs():
    assert remove_quotes('"hello"') == "hello"
    assert remove_quotes("'a b'") == "a b"
    assert remove_quotes('"a" b') == "a b"


def test_remove_quotes_nested_other_quote_kept():
    assert remove_quotes("\"it's\"") == "it's"


def test_remove_quotes_unclosed_left_alone():
    assert remove_quotes('it"s') == 'it"s'


def test_remove_quotes_adjacent_pair_resumes_past_content():
    assert remove_quotes('"a""b"') == 'a"b"'


def test_replace_span():
    assert replace_span("hello world", 0, 5, "bye") == "bye world"
    assert replace_span("abc", 1, 1) == "ac"
    assert replace_span("abc", 1, 1, None) == "ac"


def test_replace_span_with_same_text_is_identity():
    text = "echo $HOME now"
    assert replace_span(text, 5, 5, text[5:10]) == text


def test_find_end_stop_at_match():
    text = "HOME rest"
    assert find_end(text, " ", True) == text.index(" ")


def test_find_end_end_of_text_counts_as_nul():
    text = "PATH"
    assert find_end(text, "\0 ", True) == len(text)


def test_find_end_no_match():
    assert find_end("abc", "z", True) == -1


def test_find_end_first_outside_stops():
    text = "   x"
    assert find_end(text, " ", False) == text.index("x")
    assert find_end("   ", " ", False) == len("   ")


def test_filename_length_plain():
    word = "< file rest"
    assert word[: filename_length(word, " <>")] == "< file"


def test_filename_length_append():
    word = ">> out | more"
    assert word[: filename_length(word, " <>")] == ">> out"


def test_filename_length_quoted_name():
    word = '>"my file" x'
    assert word[: filename_length(word, " <>")] == '>"my file"'


def test_filename_length_runs_to_end():
    word = "<name"
    assert filename_length(word, " <>") == len(word)