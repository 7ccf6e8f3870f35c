"""Prompt-injection filtering for text embedded in LLM prompts.

User messages, dialogue history and vacancy snippets from HeadHunter are
pasted into prompts verbatim. Before that happens, invisible and control
characters are dropped and role markers or instruction overrides are
replaced with visible placeholders.

Cyrillic must come through untouched, so there is no confusable folding
and no combining-mark stripping: either would turn "й" into "и".
"""

import re
import unicodedata

# Code point ranges deleted outright. Zero-width and BiDi controls could
# otherwise split a keyword ("S<ZWSP>YSTEM:") past the patterns below.
_DELETED_RANGES = [
    (0x00, 0x08),
    (0x0B, 0x0C),
    (0x0E, 0x1F),
    (0x7F, 0x7F),
    (0x00AD, 0x00AD),  # soft hyphen
    (0x034F, 0x034F),  # combining grapheme joiner
    (0x061C, 0x061C),  # arabic letter mark
    (0x180E, 0x180E),  # mongolian vowel separator
    (0x200B, 0x200F),  # zero-width space/joiners, LRM, RLM
    (0x202A, 0x202E),  # bidi embeddings
    (0x2060, 0x2064),  # word joiner, invisible operators
    (0x2066, 0x2069),  # bidi isolates
    (0xFEFF, 0xFEFF),  # BOM
    (0xE0001, 0xE0001),  # language tag
    (0xE0020, 0xE007F),  # tag characters
]

_DELETE_TABLE = {
    code_point: None
    for start, end in _DELETED_RANGES
    for code_point in range(start, end + 1)
}

# Speaker labels at the start of a line
_ROLE_PREFIX = re.compile(
    r"^\s*(?:system|система|human|assistant)\s*:",
    re.IGNORECASE | re.MULTILINE,
)

# XML-style and ChatML-style role tags
_ROLE_TAG = re.compile(
    r"<\s*/?\s*(?:system|user|assistant)\s*>|<\|(?:system|user|assistant|im_start|im_end)\|>",
    re.IGNORECASE,
)

_INSTRUCTION_HEADER = re.compile(
    r"new\s+instructions?\s*:|новые\s+инструкци[ия]\s*:",
    re.IGNORECASE,
)

_OVERRIDE = re.compile(
    "|".join(
        [
            r"ignore\s+(?:all\s+)?previous\s+instructions?",
            r"disregard\s+(?:all\s+)?(?:prior|previous)",
            r"forget\s+everything",
            r"игнорируй\s+(?:все\s+)?(?:предыдущие|прошлые)\s+инструкци[июя]",
            r"забудь\s+(?:всё|все)",
            r"###\s*instruction\s*###",
            r"\[/?INST\]",
        ]
    ),
    re.IGNORECASE,
)

_FILTERS: list[tuple[re.Pattern[str], str]] = [
    (_ROLE_PREFIX, "[FILTERED]:"),
    (_ROLE_TAG, "[TAG]"),
    (_OVERRIDE, "[FILTERED]"),
    (_INSTRUCTION_HEADER, "[FILTERED]:"),
]


def sanitize_llm_input(text: str) -> str:
    """Neutralize injection attempts in text bound for a prompt.

    Defense in depth, not a guarantee. Matches are replaced rather than
    escaped so filtering stays visible in logged prompts.

    Args:
        text: Chat message, history turn or listing snippet.

    Returns:
        The filtered text; ordinary Russian text is returned unchanged.
    """
    if not text:
        return text

    # NFKC folds fullwidth and styled Latin (Ａ -> A); й and ё stay composed
    result = unicodedata.normalize("NFKC", text).translate(_DELETE_TABLE)
    for pattern, replacement in _FILTERS:
        result = pattern.sub(replacement, result)
    return result
