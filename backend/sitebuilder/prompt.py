import re
from typing import Optional

from sitebuilder.models import (
    ALLOWED_UPDATE_KEYS,
    APPLY_JSON_MARKER,
    CANVAS_COPY_KEYS,
    FULL_UPDATE_KEYS,
    WebsiteContent,
)

prompt = """<role>
You are a website editor working on a live portfolio page shown next to this chat.
</role>

<context>
The page preview updates ONLY when you output {MARKER} followed by a JSON object with the new values.
Your reply text alone is not enough: if you describe a change without the {MARKER} line, nothing on the page changes.
</context>

<current_content>
Current page content (these are the exact keys for your JSON):
{CURRENT_CONTENT}
</current_content>

<user_query>
{QUERY}
</user_query>

<output_format>
1. Reply in 1-2 short sentences.
2. Then, on a NEW LINE, write exactly {MARKER} followed by a single JSON object.
   No code block, no markdown: just the marker and then { "key": "value", ... }.
3. Use ONLY these keys: {ALLOWED_KEYS}
   Any other key is ignored. Every value must be a string.
4. Escape double quotes inside values as \\" and keep each value on one line.
</output_format>

<full_update_rule>
When the user asks to change a name (e.g. Dr Sandeep to Dr Ayushi), to "update all content", to change the theme
(e.g. "make it doctor/medical themed") or to rewrite the "whole website", you MUST include every one of these keys
with new values that match the new name or theme:
{FULL_UPDATE_KEYS}
Do NOT answer such a request with only 1-2 keys.
</full_update_rule>

<example>
<user_query>
change to Dr Ayushi and doctor theme
</user_query>

<response>
Done! I rewrote the page for Dr. Ayushi's practice.
{MARKER} {"title": "Dr. Ayushi", "heroHeading": "Welcome to Your Health", "heroDescription": "Providing compassionate care for every patient.", "heroJumboText": "I am Dr. Ayushi, your healthcare partner.", "experienceHeading": "My Medical Experience", "experienceParagraph": "Twelve years of experience in patient care.", "contactHeading": "Book a visit", "contactSubheading": "Appointments open Monday to Saturday", "contactParagraph": "Call the clinic or send a message to schedule.", "footerText": "Dr. Ayushi Clinic"}
</response>
</example>
"""

_PLACEHOLDER = re.compile(r"\{([A-Z_]+)\}")


def _quote(value: Optional[str]) -> str:
    escaped = (value or "").replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_current_content(content: WebsiteContent) -> str:
    """One `- key: "value"` line per field the model may change, as rendered"""
    lines = [
        f"- title: {_quote(content.title)}",
        f"- heroHeading: {_quote(content.hero_heading)}",
        f"- heroDescription: {_quote(content.hero_description)}",
        f"- heroJumboText: {_quote(content.jumbo_text)}",
    ]
    lines.extend(f"- {key}: {_quote(content.copy_text(key))}" for key in CANVAS_COPY_KEYS)
    return "\n".join(lines)


def build_prompt_with_page_context(
    user_prompt: str, current_content: Optional[WebsiteContent]
) -> str:
    """Wrap the user's request with the page content and the APPLY_JSON contract.

    Without a current page the request is passed through unchanged.
    """
    if current_content is None:
        return user_prompt

    values = {
        "MARKER": APPLY_JSON_MARKER,
        "CURRENT_CONTENT": format_current_content(current_content),
        "QUERY": user_prompt,
        "ALLOWED_KEYS": ", ".join(ALLOWED_UPDATE_KEYS),
        "FULL_UPDATE_KEYS": ", ".join(FULL_UPDATE_KEYS),
    }
    # Single pass, so placeholder-like text inside values is left alone
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), prompt)
