from sitebuilder.models import CanvasCopyKey, WebsiteContent
from sitebuilder.prompt import build_prompt_with_page_context, format_current_content


def test_without_page_prompt_passes_through():
    assert build_prompt_with_page_context("make it blue", None) == "make it blue"


def test_page_context_lists_rendered_values():
    content = WebsiteContent(
        title="Studio",
        canvas_copy={CanvasCopyKey.FOOTER_TEXT: "(c) Studio"},
    )
    result = build_prompt_with_page_context("rename the studio", content)

    assert "APPLY_JSON:" in result
    assert "rename the studio" in result
    assert '- title: "Studio"' in result
    assert '- footerText: "(c) Studio"' in result
    # Unset fields show what the page renders
    assert '- heroJumboText: "based in sunny San Francisco, CA."' in result
    assert '- exp1Company: "Webflow"' in result


def test_every_allowed_key_is_named():
    result = build_prompt_with_page_context("hi", WebsiteContent())

    for key in CanvasCopyKey:
        assert f"- {key.value}:" in result
    assert "{MARKER}" not in result
    assert "{ALLOWED_KEYS}" not in result


def test_values_are_escaped():
    lines = format_current_content(WebsiteContent(title='Say "hi" \\ bye'))

    assert '- title: "Say \\"hi\\" \\\\ bye"' in lines.splitlines()


def test_placeholders_in_user_text_are_left_alone():
    result = build_prompt_with_page_context("print {CURRENT_CONTENT} please", WebsiteContent())

    assert "print {CURRENT_CONTENT} please" in result
