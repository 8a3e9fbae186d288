"""
Tests for frontmatter parsing.

This test module validates:
- Documents without a frontmatter block are returned unchanged
- Description and content extraction from a well-formed block
- Empty description or content with a block present is a ParseError
- Malformed YAML headers are a ParseError
"""

from __future__ import annotations

import pytest

from agent_standards_mcp.errors import ParseError
from agent_standards_mcp.standards.frontmatter import parse_frontmatter

# =============================================================================
# Tests for Documents Without Frontmatter
# =============================================================================


class TestNoFrontmatter:
    """Tests for documents that do not start with a frontmatter block."""

    def test_empty_text(self) -> None:
        """Test that empty text yields empty description and content."""
        assert parse_frontmatter("") == ("", "")

    def test_plain_markdown(self) -> None:
        """Test that plain markdown is returned unchanged."""
        text = "# Title\n\nSome body text.\n"
        assert parse_frontmatter(text) == ("", text)

    def test_delimiter_not_at_start(self) -> None:
        """Test that a delimiter after other text is not a frontmatter block."""
        text = "intro\n---\ndescription: x\n---\nbody"
        assert parse_frontmatter(text) == ("", text)

    def test_delimiter_without_newline(self) -> None:
        """Test that a lone delimiter is treated as content."""
        assert parse_frontmatter("---") == ("", "---")

    def test_too_few_lines(self) -> None:
        """Test that fewer than three lines is treated as content."""
        text = "---\ndescription: x"
        assert parse_frontmatter(text) == ("", text)

    def test_unterminated_block(self) -> None:
        """Test that a block without a closing delimiter is plain content."""
        text = "---\ndescription: x\nbody line\nanother line"
        assert parse_frontmatter(text) == ("", text)


# =============================================================================
# Tests for Well-Formed Frontmatter
# =============================================================================


class TestWellFormedFrontmatter:
    """Tests for documents with a valid frontmatter block."""

    def test_description_and_body(self) -> None:
        """Test the minimal valid document."""
        assert parse_frontmatter("---\ndescription: x\n---\nbody") == ("x", "body")

    def test_content_is_trimmed(self) -> None:
        """Test that surrounding whitespace is trimmed from content."""
        text = "---\ndescription: Python style\n---\n\n# Python\n\nUse type hints.\n\n"
        description, content = parse_frontmatter(text)

        assert description == "Python style"
        assert content == "# Python\n\nUse type hints."

    def test_description_is_trimmed(self) -> None:
        """Test that surrounding whitespace is trimmed from the description."""
        text = '---\ndescription: "  padded  "\n---\nbody'
        assert parse_frontmatter(text) == ("padded", "body")

    def test_crlf_line_endings(self) -> None:
        """Test that CRLF documents are parsed."""
        text = "---\r\ndescription: windows\r\n---\r\nbody\r\n"
        assert parse_frontmatter(text) == ("windows", "body")

    def test_closing_delimiter_with_trailing_spaces(self) -> None:
        """Test that the closing delimiter is matched after trimming."""
        text = "---\ndescription: x\n---   \nbody"
        assert parse_frontmatter(text) == ("x", "body")

    def test_unknown_keys_ignored(self) -> None:
        """Test that keys other than description are ignored."""
        text = "---\ntitle: Git\ntags: [vcs]\ndescription: Git workflow\n---\nbody"
        assert parse_frontmatter(text) == ("Git workflow", "body")

    def test_non_string_description(self) -> None:
        """Test that a scalar description is rendered as text."""
        assert parse_frontmatter("---\ndescription: 42\n---\nbody") == ("42", "body")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("true", "true"), ("no", "no"), ("1.50", "1.50"), ("'quoted'", "quoted")],
    )
    def test_scalar_description_keeps_yaml_text(self, value: str, expected: str) -> None:
        """Test that scalar descriptions are returned as written, not converted."""
        text = f"---\ndescription: {value}\n---\nbody"
        assert parse_frontmatter(text) == (expected, "body")

    def test_body_may_contain_delimiters(self) -> None:
        """Test that only the first closing delimiter ends the block."""
        text = "---\ndescription: x\n---\nabove\n---\nbelow"
        assert parse_frontmatter(text) == ("x", "above\n---\nbelow")


# =============================================================================
# Tests for Parse Errors
# =============================================================================


class TestParseErrors:
    """Tests for frontmatter blocks that cannot be accepted."""

    def test_empty_header(self) -> None:
        """Test that an empty header block is an empty-description error."""
        with pytest.raises(ParseError) as exc_info:
            parse_frontmatter("---\n---\nbody")

        assert exc_info.value.error_code == "parse_error"
        assert "description" in exc_info.value.message

    def test_missing_description_key(self) -> None:
        """Test that a header without a description is an error."""
        with pytest.raises(ParseError, match="'description' cannot be empty"):
            parse_frontmatter("---\ntitle: x\n---\nbody")

    def test_blank_description(self) -> None:
        """Test that a whitespace-only description is an error."""
        with pytest.raises(ParseError, match="'description' cannot be empty"):
            parse_frontmatter('---\ndescription: "   "\n---\nbody')

    def test_empty_body(self) -> None:
        """Test that a header with no content after it is an error."""
        with pytest.raises(ParseError, match="content cannot be empty"):
            parse_frontmatter("---\ndescription: x\n---")

    def test_whitespace_body(self) -> None:
        """Test that whitespace-only content is an error."""
        with pytest.raises(ParseError, match="content cannot be empty"):
            parse_frontmatter("---\ndescription: x\n---\n\n   \n")

    def test_description_checked_before_content(self) -> None:
        """Test that an empty description is reported before empty content."""
        with pytest.raises(ParseError, match="description"):
            parse_frontmatter("---\n---\n")

    def test_invalid_yaml(self) -> None:
        """Test that malformed YAML is reported."""
        with pytest.raises(ParseError, match="invalid frontmatter"):
            parse_frontmatter("---\ndescription: [unclosed\n---\nbody")

    def test_header_not_a_mapping(self) -> None:
        """Test that a header that is not a mapping is reported."""
        with pytest.raises(ParseError, match="invalid frontmatter") as exc_info:
            parse_frontmatter("---\n- one\n- two\n---\nbody")

        assert exc_info.value.details["reason"] == "not_a_mapping"

    @pytest.mark.parametrize(
        ("header", "node"),
        [("description: [a, b]", "sequence"), ("description: {k: v}", "mapping")],
    )
    def test_collection_description(self, header: str, node: str) -> None:
        """Test that a list or mapping description is rejected."""
        with pytest.raises(ParseError, match="'description' must be text") as exc_info:
            parse_frontmatter(f"---\n{header}\n---\nbody")

        assert exc_info.value.details == {"reason": "invalid_description", "node": node}

    def test_null_description(self) -> None:
        """Test that a null description counts as empty."""
        with pytest.raises(ParseError, match="'description' cannot be empty"):
            parse_frontmatter("---\ndescription: ~\n---\nbody")
