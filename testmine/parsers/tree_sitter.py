"""Tree-sitter parser access shared by the Java and Kotlin front-ends."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, Iterator, Optional

import tree_sitter
import tree_sitter_java
import tree_sitter_kotlin

from ..models import Lang

_GRAMMARS: Dict[Lang, Callable[[], object]] = {
    Lang.JAVA: tree_sitter_java.language,
    Lang.KOTLIN: tree_sitter_kotlin.language,
}

COMMENT_TYPES = frozenset({"comment", "line_comment", "block_comment", "multiline_comment"})

_languages: Dict[Lang, tree_sitter.Language] = {}
_languages_lock = threading.Lock()
# Parsers keep per-parse state, so every worker thread gets its own.
_local = threading.local()


def _language(lang: Lang) -> tree_sitter.Language:
    with _languages_lock:
        language = _languages.get(lang)
        if language is None:
            language = tree_sitter.Language(_GRAMMARS[lang]())
            _languages[lang] = language
        return language


def get_parser(lang: Lang) -> tree_sitter.Parser:
    """Return the calling thread's parser for ``lang``."""
    parsers: Optional[Dict[Lang, tree_sitter.Parser]] = getattr(_local, "parsers", None)
    if parsers is None:
        parsers = {}
        _local.parsers = parsers
    parser = parsers.get(lang)
    if parser is None:
        parser = tree_sitter.Parser(_language(lang))
        parsers[lang] = parser
    return parser


def parse_source(lang: Lang, source_bytes: bytes) -> tree_sitter.Tree:
    return get_parser(lang).parse(source_bytes)


def node_text(node: Optional[tree_sitter.Node], source_bytes: bytes) -> str:
    if node is None:
        return ""
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def iter_descendants(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield every named descendant of ``node`` in source (pre-)order."""
    stack = list(reversed(node.named_children))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def first_child_of_type(node: tree_sitter.Node, types: Iterable[str]) -> Optional[tree_sitter.Node]:
    wanted = set(types)
    for child in node.named_children:
        if child.type in wanted:
            return child
    return None


def leading_comment(node: tree_sitter.Node, source_bytes: bytes) -> str:
    """Return the comment block directly above ``node``.

    A block or doc comment is taken alone; consecutive line comments on
    adjacent lines are merged into one text.
    """
    previous = node.prev_named_sibling
    if previous is None or previous.type not in COMMENT_TYPES:
        return ""
    text = node_text(previous, source_bytes)
    if not text.lstrip().startswith("//"):
        return text.strip()

    lines = [text.strip()]
    line = previous.start_point[0]
    candidate = previous.prev_named_sibling
    while candidate is not None and candidate.type in COMMENT_TYPES:
        candidate_text = node_text(candidate, source_bytes)
        if not candidate_text.lstrip().startswith("//") or candidate.end_point[0] != line - 1:
            break
        lines.insert(0, candidate_text.strip())
        line = candidate.start_point[0]
        candidate = candidate.prev_named_sibling
    return "\n".join(lines)


def unquote(text: str) -> str:
    """Strip string-literal quotes and common escapes; other text is returned as is."""
    text = text.strip()
    for quote in ('"""', '"'):
        if len(text) >= 2 * len(quote) and text.startswith(quote) and text.endswith(quote):
            inner = text[len(quote) : -len(quote)]
            return (
                inner.replace('\\"', '"')
                .replace("\\n", "\n")
                .replace("\\t", "\t")
                .replace("\\\\", "\\")
            )
    return text


__all__ = [
    "COMMENT_TYPES",
    "first_child_of_type",
    "get_parser",
    "iter_descendants",
    "leading_comment",
    "node_text",
    "parse_source",
    "unquote",
]
