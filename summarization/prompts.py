"""
Prompt templates for page summarization.
"""
from typing import Optional


# ==================================
# Summary type instructions
# ==================================
SUMMARY_TYPE_INSTRUCTIONS = {
    "key-points": """
Extract the KEY POINTS of the page.

RULES:
- Each point covers one distinct idea, fact or finding
- Order points by importance, most important first
- Avoid redundancy or overlapping points
""",

    "tldr": """
Write a TL;DR of the page.

RULES:
- State the main idea and outcome directly
- Skip background and examples
""",

    "teaser": """
Write a short teaser for the page.

RULES:
- Highlight the most interesting part of the content
- Make the reader want to open the page
""",

    "headline": """
Write a single headline for the page.

RULES:
- Capture the main point in one line
- No trailing punctuation
""",
}


# ==================================
# Length instructions
# ==================================
LENGTH_INSTRUCTIONS = {
    "key-points": {"short": "Give exactly 3 points.", "medium": "Give 5 points.", "long": "Give 7 points."},
    "tldr": {"short": "One sentence.", "medium": "Three sentences.", "long": "One short paragraph."},
    "teaser": {"short": "One sentence.", "medium": "Three sentences.", "long": "One short paragraph."},
    "headline": {"short": "At most 12 words.", "medium": "At most 17 words.", "long": "At most 22 words."},
}


# ==================================
# Format instructions
# ==================================
FORMAT_INSTRUCTIONS = {
    "markdown": "Format the output as Markdown. Write each point as a bullet starting with \"- \".",
    "plain-text": "Format the output as plain text with no Markdown syntax.",
}


PAGE_SUMMARY_PROMPT = """
You are summarizing a web page.

IMPORTANT RULES:
- Use ONLY the information present in the content
- Do NOT add assumptions, interpretations, or external knowledge
- Preserve factual accuracy (numbers, dates, names)
- Ignore navigation, cookie banners and other page chrome
{context}
{instruction}
LENGTH:
{length}

FORMAT:
{format}

CONTENT:
{content}

OUTPUT:
"""


def get_page_summary_prompt(
    text: str,
    summary_type: str = "key-points",
    summary_format: str = "markdown",
    length: str = "short",
    shared_context: Optional[str] = None,
    context: Optional[str] = None,
) -> str:
    """
    Build the summarization prompt for a page.

    Args:
        text: Sanitized page text
        summary_type: Style key from SUMMARY_TYPE_INSTRUCTIONS
        summary_format: "markdown" or "plain-text"
        length: "short", "medium" or "long"
        shared_context: Context shared by every summary of the session
        context: Per-request context (e.g. the page title)
    """
    instruction = SUMMARY_TYPE_INSTRUCTIONS.get(summary_type, SUMMARY_TYPE_INSTRUCTIONS["key-points"])
    lengths = LENGTH_INSTRUCTIONS.get(summary_type, LENGTH_INSTRUCTIONS["key-points"])

    context_lines = []
    if shared_context:
        context_lines.append(f"CONTEXT: {shared_context}")
    if context:
        context_lines.append(f"PAGE: {context}")
    context_block = ("\n" + "\n".join(context_lines) + "\n") if context_lines else ""

    return PAGE_SUMMARY_PROMPT.format(
        context=context_block,
        instruction=instruction,
        length=lengths.get(length, lengths["short"]),
        format=FORMAT_INSTRUCTIONS.get(summary_format, FORMAT_INSTRUCTIONS["markdown"]),
        content=text,
    )
