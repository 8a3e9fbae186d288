"""
Frontmatter parsing for standard documents.

A standard is a markdown file that may start with a YAML block delimited by
`---` lines. Only the `description` key of that block is used:

    ---
    description: How we write Python services
    ---
    # Python services
    ...

When the opening delimiter is present but no closing delimiter follows, the
whole text is treated as plain content. When both delimiters are present, the
description and the content after the block must both be non-empty.
"""

from __future__ import annotations

import yaml

from agent_standards_mcp.errors import ParseError

FRONTMATTER_DELIMITER = "---"

# Opening delimiter, header line(s), closing delimiter
MINIMUM_FRONTMATTER_LINES = 3

_NULL_TAG = "tag:yaml.org,2002:null"


def _has_opening_delimiter(text: str) -> bool:
    return text.startswith(FRONTMATTER_DELIMITER + "\n") or text.startswith(
        FRONTMATTER_DELIMITER + "\r\n"
    )


def _find_closing_delimiter(lines: list[str]) -> int | None:
    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            return index
    return None


def _extract_description(header_text: str) -> str:
    """
    Parse the YAML header and return its description as written.

    Scalars keep their YAML spelling ("true", "1.50"); a null or missing
    description is empty.

    Raises:
        ParseError: If the header is not valid YAML, is not a mapping, or
            its description is a sequence or mapping.
    """
    try:
        root = yaml.compose(header_text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise ParseError(
            f"invalid frontmatter: {e}",
            details={"reason": "yaml"},
        ) from e

    if root is None:
        return ""
    if not isinstance(root, yaml.MappingNode):
        raise ParseError(
            "invalid frontmatter: expected a mapping of keys to values",
            details={"reason": "not_a_mapping", "node": root.id},
        )

    for key_node, value_node in root.value:
        if not (isinstance(key_node, yaml.ScalarNode) and key_node.value == "description"):
            continue
        if not isinstance(value_node, yaml.ScalarNode):
            raise ParseError(
                f"invalid frontmatter: 'description' must be text, got a {value_node.id}",
                details={"reason": "invalid_description", "node": value_node.id},
            )
        if value_node.tag == _NULL_TAG:
            return ""
        return value_node.value

    return ""


def parse_frontmatter(text: str) -> tuple[str, str]:
    """
    Split a standard document into its description and content.

    Args:
        text: Raw document text.

    Returns:
        Tuple of (description, content). Without a frontmatter block the
        description is empty and the content is the unmodified text.

    Raises:
        ParseError: If the frontmatter is malformed, or if a frontmatter block
            is present but its description or the following content is empty.

    Example:
        >>> parse_frontmatter("---\\ndescription: x\\n---\\nbody")
        ('x', 'body')
    """
    if not text:
        return "", ""

    if not _has_opening_delimiter(text):
        return "", text

    lines = text.split("\n")
    if len(lines) < MINIMUM_FRONTMATTER_LINES:
        return "", text

    end_index = _find_closing_delimiter(lines)
    if end_index is None:
        # An unterminated block is plain content, not an error
        return "", text

    description = _extract_description("\n".join(lines[1:end_index])).strip()
    content = "\n".join(lines[end_index + 1 :]).strip()

    if not description:
        raise ParseError(
            "frontmatter 'description' cannot be empty",
            details={"reason": "empty_description"},
        )
    if not content:
        raise ParseError(
            "standard content cannot be empty",
            details={"reason": "empty_content"},
        )

    return description, content
