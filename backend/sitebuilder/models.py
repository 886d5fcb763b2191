from enum import Enum
from typing import Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

APPLY_JSON_MARKER = "APPLY_JSON:"


class CanvasCopyKey(str, Enum):
    """Closed set of canvas text fields a model reply may write."""

    EXPERIENCE_HEADING = "experienceHeading"
    EXPERIENCE_PARAGRAPH = "experienceParagraph"
    WORK1_TITLE = "work1Title"
    WORK1_CATEGORY = "work1Category"
    WORK2_TITLE = "work2Title"
    WORK2_CATEGORY = "work2Category"
    WORK3_TITLE = "work3Title"
    WORK3_CATEGORY = "work3Category"
    WORK4_TITLE = "work4Title"
    WORK4_CATEGORY = "work4Category"
    EXP1_COMPANY = "exp1Company"
    EXP1_ROLE = "exp1Role"
    EXP1_PERIOD = "exp1Period"
    EXP2_COMPANY = "exp2Company"
    EXP2_ROLE = "exp2Role"
    EXP2_PERIOD = "exp2Period"
    EXP3_COMPANY = "exp3Company"
    EXP3_ROLE = "exp3Role"
    EXP3_PERIOD = "exp3Period"
    EXP4_COMPANY = "exp4Company"
    EXP4_ROLE = "exp4Role"
    EXP4_PERIOD = "exp4Period"
    CONTACT_HEADING = "contactHeading"
    CONTACT_SUBHEADING = "contactSubheading"
    CONTACT_PARAGRAPH = "contactParagraph"
    FOOTER_TEXT = "footerText"
    SECTION_NEW1_TITLE = "sectionNew1Title"
    SECTION_NEW1_CATEGORY = "sectionNew1Category"
    SECTION_NEW2_TITLE = "sectionNew2Title"
    SECTION_NEW2_CATEGORY = "sectionNew2Category"
    SECTION_NEW3_TITLE = "sectionNew3Title"
    SECTION_NEW3_CATEGORY = "sectionNew3Category"
    SECTION_NEW4_TITLE = "sectionNew4Title"
    SECTION_NEW4_CATEGORY = "sectionNew4Category"


CANVAS_COPY_KEYS = tuple(key.value for key in CanvasCopyKey)

DEFAULT_HERO_JUMBO_TEXT = "based in sunny San Francisco, CA."

DEFAULT_CANVAS_COPY: Dict[CanvasCopyKey, str] = {
    CanvasCopyKey.EXPERIENCE_HEADING: "Experience",
    CanvasCopyKey.EXPERIENCE_PARAGRAPH: (
        "I have spent the last decade designing digital products for startups "
        "and global brands alike."
    ),
    CanvasCopyKey.WORK1_TITLE: "Brand Refresh",
    CanvasCopyKey.WORK1_CATEGORY: "Branding",
    CanvasCopyKey.WORK2_TITLE: "Mobile Banking App",
    CanvasCopyKey.WORK2_CATEGORY: "Product Design",
    CanvasCopyKey.WORK3_TITLE: "Design System",
    CanvasCopyKey.WORK3_CATEGORY: "UI Kit",
    CanvasCopyKey.WORK4_TITLE: "Travel Journal",
    CanvasCopyKey.WORK4_CATEGORY: "Web Design",
    CanvasCopyKey.EXP1_COMPANY: "Webflow",
    CanvasCopyKey.EXP1_ROLE: "Senior Product Designer",
    CanvasCopyKey.EXP1_PERIOD: "2021 - Present",
    CanvasCopyKey.EXP2_COMPANY: "Dropbox",
    CanvasCopyKey.EXP2_ROLE: "Product Designer",
    CanvasCopyKey.EXP2_PERIOD: "2018 - 2021",
    CanvasCopyKey.EXP3_COMPANY: "Airbnb",
    CanvasCopyKey.EXP3_ROLE: "UX Designer",
    CanvasCopyKey.EXP3_PERIOD: "2016 - 2018",
    CanvasCopyKey.EXP4_COMPANY: "Freelance",
    CanvasCopyKey.EXP4_ROLE: "Visual Designer",
    CanvasCopyKey.EXP4_PERIOD: "2014 - 2016",
    CanvasCopyKey.CONTACT_HEADING: "Contact",
    CanvasCopyKey.CONTACT_SUBHEADING: "Let's work together",
    CanvasCopyKey.CONTACT_PARAGRAPH: "Get in touch.",
    CanvasCopyKey.FOOTER_TEXT: "All rights reserved.",
    CanvasCopyKey.SECTION_NEW1_TITLE: "New Project",
    CanvasCopyKey.SECTION_NEW1_CATEGORY: "Category",
    CanvasCopyKey.SECTION_NEW2_TITLE: "New Project",
    CanvasCopyKey.SECTION_NEW2_CATEGORY: "Category",
    CanvasCopyKey.SECTION_NEW3_TITLE: "New Project",
    CanvasCopyKey.SECTION_NEW3_CATEGORY: "Category",
    CanvasCopyKey.SECTION_NEW4_TITLE: "New Project",
    CanvasCopyKey.SECTION_NEW4_CATEGORY: "Category",
}


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WebsiteSection(CamelModel):
    id: str = Field(frozen=True)
    title: str
    content: str = ""


class WebsiteContent(CamelModel):
    title: str = "My Website"
    hero_heading: str = "Welcome"
    hero_description: str = "Describe your website here."
    hero_jumbo_text: Optional[str] = None
    canvas_copy: Dict[CanvasCopyKey, str] = Field(default_factory=dict)
    sections: List[WebsiteSection] = Field(default_factory=list)

    def copy_text(self, key: CanvasCopyKey | str) -> str:
        """Canvas text for `key`, falling back to the default copy table"""
        key = CanvasCopyKey(key)
        return self.canvas_copy.get(key, DEFAULT_CANVAS_COPY[key])

    @property
    def jumbo_text(self) -> str:
        return self.hero_jumbo_text or DEFAULT_HERO_JUMBO_TEXT


class ParsedUpdate(CamelModel):
    """Sparse, allow-listed changes decoded from a model reply"""

    title: Optional[str] = None
    hero_heading: Optional[str] = None
    hero_description: Optional[str] = None
    hero_jumbo_text: Optional[str] = None
    canvas_copy: Dict[CanvasCopyKey, str] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.canvas_copy and all(
            value is None
            for value in (
                self.title,
                self.hero_heading,
                self.hero_description,
                self.hero_jumbo_text,
            )
        )



# Wire name -> attribute for the top-level document fields an update may carry
TOP_LEVEL_FIELDS = {
    to_camel(name): name for name in ParsedUpdate.model_fields if name != "canvas_copy"
}
TOP_LEVEL_UPDATE_FIELDS = tuple(TOP_LEVEL_FIELDS)

ALLOWED_UPDATE_KEYS = TOP_LEVEL_UPDATE_FIELDS + CANVAS_COPY_KEYS

# Keys a "whole site" or theme request has to fill in
FULL_UPDATE_KEYS = (
    TOP_LEVEL_UPDATE_FIELDS
    + (
        "experienceHeading",
        "experienceParagraph",
        "contactHeading",
        "contactSubheading",
        "contactParagraph",
        "footerText",
    )
    + tuple(f"exp{i}{part}" for i in range(1, 5) for part in ("Company", "Role", "Period"))
    + tuple(f"work{i}{part}" for i in range(1, 5) for part in ("Title", "Category"))
)


class EditorNode(CamelModel):
    id: str
    label: str
    children: List["EditorNode"] = Field(default_factory=list)
    is_container: bool = False


class ElementStyle(CamelModel):
    """Sparse presentation overrides; None means inherit the default"""

    display: Optional[Literal["block", "flex", "grid", "inline", "inline-block", "none"]] = None
    margin_top: Optional[int] = None
    margin_right: Optional[int] = None
    margin_bottom: Optional[int] = None
    margin_left: Optional[int] = None
    padding_top: Optional[int] = None
    padding_right: Optional[int] = None
    padding_bottom: Optional[int] = None
    padding_left: Optional[int] = None
    width: Optional[str] = None
    height: Optional[str] = None
    min_w: Optional[str] = None
    min_h: Optional[str] = None
    max_w: Optional[str] = None
    max_h: Optional[str] = None
    overflow: Optional[Literal["visible", "hidden", "scroll", "auto"]] = None
    position: Optional[Literal["static", "relative", "absolute", "fixed", "sticky"]] = None
    font_family: Optional[str] = None
    font_size: Optional[str] = None
    font_weight: Optional[str] = None
    line_height: Optional[str] = None
    text_align: Optional[Literal["left", "center", "right", "justify"]] = None
    color: Optional[str] = None
    background_color: Optional[str] = None
    border_width: Optional[int] = None
    border_style: Optional[Literal["none", "solid", "dashed", "dotted", "double"]] = None
    border_color: Optional[str] = None
    border_radius: Optional[int] = None
    opacity: Optional[float] = Field(default=None, ge=0, le=1)
    mix_blend_mode: Optional[str] = None
    cursor: Optional[str] = None


DEFAULT_ELEMENT_STYLE = ElementStyle(
    display="block",
    margin_top=0,
    margin_right=0,
    margin_bottom=0,
    margin_left=0,
    padding_top=0,
    padding_right=0,
    padding_bottom=0,
    padding_left=0,
    width="auto",
    height="auto",
    min_w="0",
    min_h="0",
    max_w="none",
    max_h="none",
    overflow="visible",
    position="static",
    font_family="inherit",
    font_size="inherit",
    font_weight="inherit",
    line_height="normal",
    text_align="left",
    color="inherit",
    background_color="transparent",
    border_width=0,
    border_style="none",
    border_color="currentColor",
    border_radius=0,
    opacity=1.0,
    mix_blend_mode="normal",
    cursor="auto",
)

DEFAULT_EXPANDED_IDS = ("body", "hero", "hero-container", "hero-intro")


class EditorState(CamelModel):
    tree: List[EditorNode] = Field(default_factory=list)
    selected_id: Optional[str] = None
    expanded_ids: Set[str] = Field(default_factory=lambda: set(DEFAULT_EXPANDED_IDS))
    label_overrides: Dict[str, str] = Field(default_factory=dict)
    styles: Dict[str, ElementStyle] = Field(default_factory=dict)


class ChatMessage(CamelModel):
    role: Literal["user", "agent"]
    content: str
    timestamp: str
    error: bool = False
    updates: Optional[ParsedUpdate] = None


class ChatThread(CamelModel):
    id: str
    messages: List[ChatMessage] = Field(default_factory=list)
    pending: bool = False


class BuilderSession(CamelModel):
    id: str
    status: Literal["created", "ready", "processing"] = "created"
    original_prompt: str = ""
    content: WebsiteContent
    editor: EditorState = Field(default_factory=EditorState)
    chats: Dict[str, ChatThread] = Field(default_factory=dict)
    generation: int = 0
    created_at: str
    updated_at: str
