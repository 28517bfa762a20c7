"""Unit tests for the ILE span finder and call parser."""

from replybot.strategies.ile.models import Call, RandShorthand, VarRef
from replybot.strategies.ile.scanner import find_spans, parse_call, parse_expression, split_args, unquote


# =============================================================================
# Span Finder Tests
# =============================================================================


class TestFindSpans:
    """Test suite for find_spans."""

    def test_no_spans(self):
        """Test that plain text yields no spans."""
        assert find_spans("Hello {world} $ {x}") == []

    def test_spans_in_order(self):
        """Test that spans are returned left to right with offsets."""
        spans = find_spans("a ${x} b ${y}")

        assert [s.content for s in spans] == ["x", "y"]
        assert [s.start_index for s in spans] == [2, 9]
        assert spans[0].raw == "${x}"
        assert spans[1].end_index == len("a ${x} b ${y}")

    def test_nested_span_is_one_top_level_span(self):
        """Test that an inner ${...} stays inside the outer span's content."""
        spans = find_spans("${f(${g})}!")

        assert len(spans) == 1
        assert spans[0].content == "f(${g})"
        assert spans[0].raw == "${f(${g})}"

    def test_bare_brace_does_not_nest(self):
        """Test that only the two-character token raises depth."""
        spans = find_spans("${a{b}c}")

        assert len(spans) == 1
        assert spans[0].raw == "${a{b}"
        assert spans[0].content == "a{b"

    def test_unterminated_span_is_skipped(self):
        """Test that an unclosed opener is not an error."""
        assert find_spans("${abc") == []

    def test_scanning_resumes_after_unterminated_opener(self):
        """Test that a complete span after an unclosed opener is found."""
        spans = find_spans("x ${a ${b}")

        assert len(spans) == 1
        assert spans[0].content == "b"
        assert spans[0].start_index == 6

    def test_dollar_before_opener(self):
        """Test that a stray dollar sign before the opener is kept as text."""
        spans = find_spans("$${x}")

        assert len(spans) == 1
        assert spans[0].start_index == 1

    def test_empty_span(self):
        """Test that ${} is a span with empty content."""
        spans = find_spans("${}")

        assert len(spans) == 1
        assert spans[0].content == ""


# =============================================================================
# Argument Splitting Tests
# =============================================================================


class TestSplitArgs:
    """Test suite for split_args and unquote."""

    def test_simple_split_strips_whitespace(self):
        """Test splitting on top-level commas."""
        assert split_args("a, b ,c") == ["a", "b", "c"]

    def test_quoted_comma_is_not_a_split_point(self):
        """Test that commas inside quotes stay in the argument."""
        assert split_args("'a,b', 'c'") == ["'a,b'", "'c'"]

    def test_parenthesized_comma_is_not_a_split_point(self):
        """Test that commas inside a nested call stay in the argument."""
        assert split_args("f(1,2), 3") == ["f(1,2)", "3"]

    def test_escaped_quote_does_not_close_string(self):
        """Test that a backslash-escaped quote keeps the string open."""
        assert split_args(r"'it\'s, fine', x") == [r"'it\'s, fine'", "x"]

    def test_other_quote_char_inside_string(self):
        """Test that a double quote inside a single-quoted string is literal."""
        assert split_args("'say \"hi, there\"', z") == ["'say \"hi, there\"'", "z"]

    def test_empty_argument_list(self):
        """Test that an empty list yields no arguments."""
        assert split_args("") == []

    def test_middle_empty_argument_kept_trailing_dropped(self):
        """Test empty argument handling."""
        assert split_args("a,,b") == ["a", "", "b"]
        assert split_args("a,") == ["a"]

    def test_unquote(self):
        """Test stripping of one pair of matching quotes."""
        assert unquote("'abc'") == "abc"
        assert unquote('"abc"') == "abc"
        assert unquote("  'x'  ") == "x"
        assert unquote("'a'b'") == "a'b"
        assert unquote("plain") == "plain"

    def test_unquote_leaves_unmatched_quotes(self):
        """Test that mismatched or lone quotes are kept."""
        assert unquote("'abc\"") == "'abc\""
        assert unquote("'") == "'"


# =============================================================================
# Expression Parsing Tests
# =============================================================================


class TestParseExpression:
    """Test suite for parse_expression."""

    def test_function_call(self):
        """Test parsing of a call with arguments."""
        assert parse_expression("set(x, 1)") == Call(name="set", args=("x", "1"))

    def test_quote_aware_call(self):
        """Test that quoted commas produce exactly two arguments."""
        call = parse_expression("get_name('a,b', 'c')")

        assert isinstance(call, Call)
        assert [unquote(a) for a in call.args] == ["a,b", "c"]

    def test_call_without_arguments(self):
        """Test parsing of an empty call."""
        assert parse_expression("rand()") == Call(name="rand", args=())

    def test_rand_shorthand(self):
        """Test the rand:MIN:MAX form."""
        assert parse_expression("rand:1:100") == RandShorthand(minimum=1, maximum=100)

    def test_signed_rand_shorthand_is_a_variable(self):
        """Test that only unsigned bounds form a shorthand."""
        assert parse_expression("rand:-1:5") == VarRef(name="rand:-1:5")

    def test_variable_reference(self):
        """Test that anything else is a verbatim variable name."""
        assert parse_expression("lucky") == VarRef(name="lucky")
        assert parse_expression(" spaced ") == VarRef(name=" spaced ")

    def test_non_identifier_name_is_a_variable(self):
        """Test that call syntax requires a word-character name."""
        assert parse_expression("a-b(1)") == VarRef(name="a-b(1)")
        assert parse_expression("foo(1) bar") == VarRef(name="foo(1) bar")

    def test_parse_call_rejects_non_calls(self):
        """Test parse_call on plain text."""
        assert parse_call("hello") is None
        assert parse_call("tbl(1, name)") == Call(name="tbl", args=("1", "name"))
