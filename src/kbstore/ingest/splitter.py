"""Fixed-window text splitting sized to the store's model.

Token counting uses a 4-chars-per-token approximation; no external
tokenizer dependency is required.
"""

from __future__ import annotations

from kbstore.providers.llm_client import get_context_window

DEFAULT_SECTION_TOKENS = 512
MIN_SECTION_TOKENS = 128
MAX_SECTION_TOKENS = 1024


def section_tokens_for(model_sub_type: str) -> int:
    """Return the section size (tokens) for text retrieved into *model_sub_type*.

    A sixteenth of the model's context window, clamped to
    [MIN_SECTION_TOKENS, MAX_SECTION_TOKENS]. Unknown sub type → default.
    """
    if not model_sub_type:
        return DEFAULT_SECTION_TOKENS
    window = get_context_window(model_sub_type)
    return max(MIN_SECTION_TOKENS, min(MAX_SECTION_TOKENS, window // 16))


def split_text(text: str, section_tokens: int = DEFAULT_SECTION_TOKENS, overlap: float = 0.10) -> list[str]:
    """Split *text* into fixed-window sections with overlap.

    Window size = ``section_tokens * 4`` characters.
    Overlap     = ``overlap`` fraction of window size.
    Sections are stripped; empty sections are omitted.
    """
    if section_tokens < 1:
        raise ValueError("section_tokens must be >= 1")
    if not 0.0 <= overlap < 1.0:
        raise ValueError("overlap must be in [0.0, 1.0)")
    if not text.strip():
        return []

    char_size = section_tokens * 4
    step = max(1, char_size - int(char_size * overlap))

    sections: list[str] = []
    pos = 0
    length = len(text)

    while pos < length:
        end = min(pos + char_size, length)
        section = text[pos:end].strip()
        if section:
            sections.append(section)
        if end >= length:
            break
        pos += step

    return sections
