"""Editor canvas state: navigator tree, selection, expansion and styles.

Operations take an `EditorState` and return a new one. Structural edits on
ids that are not in the tree return the state unchanged.
"""

from typing import Iterable, Iterator, List, Optional, Union

from sitebuilder.models import (
    DEFAULT_ELEMENT_STYLE,
    EditorNode,
    EditorState,
    ElementStyle,
    WebsiteContent,
)

BODY_ID = "body"

# Canvas hotspots that select the hero section as a whole
NAV_ALIASES = {
    "hero-container": "hero",
    "hero-intro": "hero",
    "hero-t-name": "hero",
    "hero-t-para": "hero",
    "hero-h1": "hero",
}

FIXED_LABELS = {
    "body": "Body",
    "navigation": "Navigation",
    "hero": "Section",
    "contact": "Contact",
    "footer": "Footer",
}


def _leaf(node_id: str, label: str) -> EditorNode:
    return EditorNode(id=node_id, label=label)


def _container(node_id: str, label: str, children: List[EditorNode]) -> EditorNode:
    return EditorNode(id=node_id, label=label, children=children, is_container=True)


def build_nav_tree(content: WebsiteContent) -> List[EditorNode]:
    """Fixed page scaffold plus one node per document section, in order"""
    hero = _container(
        "hero",
        "Section",
        [
            _container(
                "hero-container",
                "Container",
                [
                    _container(
                        "hero-intro",
                        "Intro Wrap",
                        [
                            _leaf("hero-t-name", "T Name Text"),
                            _leaf("hero-t-para", "T Paragraph Light"),
                            _leaf("hero-h1", "H1 Heading Jumbo"),
                        ],
                    )
                ],
            )
        ],
    )
    experience = _container(
        "experience",
        "Section",
        [
            _leaf("experience-heading", "Experience Heading"),
            _leaf("experience-paragraph", "Experience Paragraph"),
            _container(
                "experience-list",
                "Experience List",
                [_leaf(f"exp-{i}", f"Experience Item {i}") for i in range(1, 5)],
            ),
        ],
    )
    works = _container(
        "works",
        "Section",
        [
            _container(
                "works-grid",
                "Works Grid",
                [_leaf(f"work-{i}", f"Work Card {i}") for i in range(1, 5)],
            )
        ],
    )
    new_sections = _container(
        "new-sections",
        "Section",
        [
            _container(
                "new-sections-grid",
                "Cards Grid",
                [_leaf(f"section-new-{i}", f"Card {i}") for i in range(1, 5)],
            )
        ],
    )
    contact = _container(
        "contact",
        "Contact",
        [
            _leaf("contact-heading", "Contact Heading"),
            _leaf("contact-subheading", "Contact Subheading"),
            _leaf("contact-paragraph", "Contact Paragraph"),
        ],
    )

    return [
        _container(
            BODY_ID,
            "Body",
            [
                _leaf("navigation", "Navigation"),
                hero,
                experience,
                works,
                new_sections,
                *[_leaf(section.id, "Section") for section in content.sections],
                contact,
                _leaf("footer", "Footer"),
            ],
        )
    ]


def iter_nodes(nodes: Iterable[EditorNode]) -> Iterator[EditorNode]:
    """Depth-first walk over the tree"""
    for node in nodes:
        yield node
        yield from iter_nodes(node.children)


def find_node(nodes: Iterable[EditorNode], node_id: str) -> Optional[EditorNode]:
    for node in iter_nodes(nodes):
        if node.id == node_id:
            return node
    return None


def _copy_tree(nodes: List[EditorNode]) -> List[EditorNode]:
    return [node.model_copy(deep=True) for node in nodes]


def resolve_alias(node_id: str) -> str:
    return NAV_ALIASES.get(node_id, node_id)


def select(state: EditorState, node_id: Optional[str]) -> EditorState:
    """Replace the selection; the id is not validated against the tree"""
    return state.model_copy(update={"selected_id": node_id})


def select_node(state: EditorState, node_id: str) -> EditorState:
    """Selection from a navigator or canvas click, with aliases resolved"""
    return select(state, resolve_alias(node_id))


def is_selected(state: EditorState, node_id: str) -> bool:
    if state.selected_id is None:
        return False
    return state.selected_id in (resolve_alias(node_id), node_id)


def toggle_expand(state: EditorState, node_id: str) -> EditorState:
    expanded = set(state.expanded_ids)
    if node_id in expanded:
        expanded.discard(node_id)
    else:
        expanded.add(node_id)
    return state.model_copy(update={"expanded_ids": expanded})


def reorder_children(
    state: EditorState, parent_id: str, from_index: int, to_index: int
) -> EditorState:
    """Move one child within its parent's child list"""
    tree = _copy_tree(state.tree)
    parent = find_node(tree, parent_id)
    if parent is None:
        return state

    count = len(parent.children)
    if not (0 <= from_index < count and 0 <= to_index < count):
        return state
    if from_index == to_index:
        return state

    child = parent.children.pop(from_index)
    parent.children.insert(to_index, child)
    return state.model_copy(update={"tree": tree})


def rename(state: EditorState, node_id: str, label: str) -> EditorState:
    """Set a label override; an empty label restores the default"""
    if find_node(state.tree, node_id) is None:
        return state

    overrides = dict(state.label_overrides)
    if label:
        overrides[node_id] = label
    else:
        overrides.pop(node_id, None)
    return state.model_copy(update={"label_overrides": overrides})


def display_label(state: EditorState, node: EditorNode) -> str:
    return state.label_overrides.get(node.id) or node.label


def labelled_tree(state: EditorState) -> List[EditorNode]:
    """Copy of the tree with label overrides applied"""

    def relabel(node: EditorNode) -> EditorNode:
        return node.model_copy(
            update={
                "label": display_label(state, node),
                "children": [relabel(child) for child in node.children],
            }
        )

    return [relabel(node) for node in state.tree]


def set_style(
    state: EditorState, node_id: str, updates: Union[ElementStyle, dict]
) -> EditorState:
    """Merge `updates` into the sparse style override of `node_id`.

    Properties not named in `updates` keep their value. A property explicitly
    set to None is dropped from the override and inherits the default again.
    """
    if isinstance(updates, ElementStyle):
        partial = updates.model_dump(exclude_unset=True)
    else:
        partial = ElementStyle.model_validate(updates).model_dump(exclude_unset=True)

    styles = dict(state.styles)
    current = styles.get(node_id)
    merged = current.model_dump(exclude_none=True) if current else {}
    merged.update(partial)
    merged = {k: v for k, v in merged.items() if v is not None}

    if merged:
        styles[node_id] = ElementStyle(**merged)
    else:
        styles.pop(node_id, None)
    return state.model_copy(update={"styles": styles})


def get_style(state: EditorState, node_id: str) -> ElementStyle:
    """Effective style: the override laid over the default record"""
    override = state.styles.get(node_id)
    if override is None:
        return DEFAULT_ELEMENT_STYLE.model_copy()
    return DEFAULT_ELEMENT_STYLE.model_copy(update=override.model_dump(exclude_none=True))


def _merge_order(
    old_order: List[str], fresh_children: List[EditorNode], section_ids: List[str]
) -> List[EditorNode]:
    fresh_by_id = {child.id: child for child in fresh_children}
    ordered = [child_id for child_id in old_order if child_id in fresh_by_id]

    for index, child in enumerate(fresh_children):
        if child.id in ordered:
            continue
        position = 0
        for previous in reversed(fresh_children[:index]):
            if previous.id in ordered:
                position = ordered.index(previous.id) + 1
                break
        ordered.insert(position, child.id)

    # Section nodes always follow document order
    present = set(ordered)
    slots = [i for i, child_id in enumerate(ordered) if child_id in section_ids]
    in_document = [section_id for section_id in section_ids if section_id in present]
    for slot, section_id in zip(slots, in_document):
        ordered[slot] = section_id

    return [fresh_by_id[child_id] for child_id in ordered]


def sync_tree(state: EditorState, content: WebsiteContent) -> EditorState:
    """Re-derive the tree from the document, keeping user reorders"""
    fresh = build_nav_tree(content)
    section_ids = [section.id for section in content.sections]
    old_nodes = {node.id: node for node in iter_nodes(state.tree)}

    def merge(nodes: List[EditorNode]) -> None:
        for node in nodes:
            old = old_nodes.get(node.id)
            if old is not None and old.children and node.children:
                node.children = _merge_order(
                    [child.id for child in old.children], node.children, section_ids
                )
            merge(node.children)

    fresh = _merge_order([node.id for node in state.tree], fresh, section_ids)
    merge(fresh)

    new_ids = {node.id for node in iter_nodes(fresh)}
    removed = set(old_nodes) - new_ids
    changes = {"tree": fresh}
    if removed:
        changes["label_overrides"] = {
            k: v for k, v in state.label_overrides.items() if k not in removed
        }
        changes["styles"] = {k: v for k, v in state.styles.items() if k not in removed}
        changes["expanded_ids"] = set(state.expanded_ids) - removed
        if state.selected_id in removed:
            changes["selected_id"] = None
    return state.model_copy(update=changes)


def section_order(state: EditorState, content: WebsiteContent) -> List[str]:
    """Section ids in the order their nodes appear in the tree"""
    known = {section.id for section in content.sections}
    return [node.id for node in iter_nodes(state.tree) if node.id in known]


def selected_label(state: EditorState, content: WebsiteContent) -> Optional[str]:
    selected_id = state.selected_id
    if not selected_id:
        return None
    if selected_id in state.label_overrides:
        return state.label_overrides[selected_id]
    if selected_id in FIXED_LABELS:
        return FIXED_LABELS[selected_id]
    for section in content.sections:
        if section.id == selected_id:
            return section.title or "Section"
    node = find_node(state.tree, selected_id)
    return node.label if node else "Section"


def breadcrumb(state: EditorState, content: WebsiteContent) -> str:
    label = selected_label(state, content)
    return f"Body > {label}" if label else "Body"
