"""
Display/speech clean-up of free model text.

The steps run in a fixed order and later steps see the output of earlier
ones: emphasis stripping, list-marker normalization, whitespace collapsing,
section-label glyphs, then farming-term glyphs. Glyph insertion is guarded so
a second pass never adds a glyph twice.
"""

import re
from typing import Any

FORMAT_ERROR_MESSAGE = "⚠️ Unable to display this response."

BULLET_GLYPH = "🌱"

LABEL_GLYPHS = (
    (r"direct\s+answer", "✅"),
    (r"key\s+actions?", "📋"),
    (r"important\s+note", "📌"),
    (r"recommendations?", "💡"),
    (r"warning", "⚠️"),
    (r"tips?", "💡"),
    (r"steps", "📝"),
    (r"solution", "🔧"),
)

TERM_GLYPHS = (
    (r"fertili[sz]ers?", "🧪"),
    (r"seeds?", "🌰"),
    (r"water|irrigation", "💧"),
    (r"soils?", "🟤"),
    (r"crops?", "🌾"),
    (r"plants?", "🌿"),
    (r"harvest(?:s|ing)?", "🚜"),
    (r"pesticides?", "🧴"),
    (r"diseases?", "🦠"),
    (r"weather|climate", "🌦️"),
    (r"profits?|income", "💰"),
    (r"markets?", "🏪"),
)

_CODE_FENCE = re.compile(r"```[^\n]*\n?")
_INLINE_CODE = re.compile(r"`([^`\n]*)`")
_STAR_LIST_MARKER = re.compile(r"^([ \t]*)\*([ \t]+)", re.MULTILINE)
_BOLD = re.compile(r"(\*\*|__)(.+?)\1", re.DOTALL)
_ITALIC_STAR = re.compile(r"\*(?!\s)([^*\n]+?)\*")
_ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_(?!\s)([^_\n]+?)_(?!\w)")
_HEADING = re.compile(r"^[ \t]*#{1,6}[ \t]*", re.MULTILINE)
_LIST_MARKER = re.compile(r"^[ \t]*(?:[-•–]|\d{1,3}[.)])[ \t]+", re.MULTILINE)
_BLANK_RUN = re.compile(r"\n{3,}")


def _compile_glyph_rules(rules, suffix: str = ""):
    compiled = []
    for pattern, glyph in rules:
        regex = re.compile(
            rf"(?<!{re.escape(glyph)} )\b(?:{pattern}){suffix}",
            re.IGNORECASE,
        )
        compiled.append((regex, glyph))
    return compiled


_LABEL_RULES = _compile_glyph_rules(LABEL_GLYPHS, suffix=r":")
_TERM_RULES = _compile_glyph_rules(TERM_GLYPHS, suffix=r"\b")


def strip_emphasis(text: str) -> str:
    text = _CODE_FENCE.sub("", text)
    text = _INLINE_CODE.sub(r"\1", text)
    # "* item" is a list marker, not emphasis; keep it for the next step.
    text = _STAR_LIST_MARKER.sub(r"\1-\2", text)
    text = _BOLD.sub(r"\2", text)
    text = _ITALIC_STAR.sub(r"\1", text)
    text = _ITALIC_UNDERSCORE.sub(r"\1", text)
    text = text.replace("*", "")
    return _HEADING.sub("", text)


def normalize_list_markers(text: str) -> str:
    return _LIST_MARKER.sub(f"{BULLET_GLYPH} ", text)


def collapse_whitespace(text: str) -> str:
    lines = [line.strip() for line in text.splitlines()]
    return _BLANK_RUN.sub("\n\n", "\n".join(lines)).strip()


def _prefix_matches(text: str, rules) -> str:
    for regex, glyph in rules:
        text = regex.sub(lambda match: f"{glyph} {match.group(0)}", text)
    return text


def add_label_glyphs(text: str) -> str:
    return _prefix_matches(text, _LABEL_RULES)


def add_term_glyphs(text: str) -> str:
    return _prefix_matches(text, _TERM_RULES)


def format_response(raw: Any) -> str:
    if not isinstance(raw, str):
        return FORMAT_ERROR_MESSAGE

    text = strip_emphasis(raw)
    text = normalize_list_markers(text)
    text = collapse_whitespace(text)
    text = add_label_glyphs(text)
    return add_term_glyphs(text)
