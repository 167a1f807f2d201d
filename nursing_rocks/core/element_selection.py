import uuid
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from nursing_rocks.core.page_document import ElementNode, PageDocument
from nursing_rocks.core.text_content import BR_PATTERN, html_to_editable_text


ElementType = Literal["image", "text", "video", "generic"]

IMAGE_TAGS = {"IMG", "PICTURE", "SVG"}
VIDEO_TAGS = {"VIDEO", "IFRAME"}
TEXT_TAGS = {
    "P", "H1", "H2", "H3", "H4", "H5", "H6", "SPAN", "A", "BUTTON", "LI",
    "LABEL", "STRONG", "EM", "SMALL", "BLOCKQUOTE", "FIGCAPTION", "TD", "TH",
}

# Inline text runs inside these are selected as the control itself
INTERACTIVE_TAGS = ("BUTTON", "A")

SYNTHETIC_ID_PREFIX = "nr-edit-"


class SelectedElement(BaseModel):
    id: str
    type: ElementType
    original_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


def classify(node: ElementNode) -> ElementType:
    tag = node.tag_name
    if tag in IMAGE_TAGS:
        return "image"
    if tag in VIDEO_TAGS:
        return "video"
    if tag in TEXT_TAGS:
        return "text"
    # a div that directly carries text reads as a text block
    if tag == "DIV" and node.inner_html and "<" not in BR_PATTERN.sub("", node.inner_html):
        return "text"
    return "generic"


def resolve_target(document: PageDocument, node: ElementNode) -> ElementNode:
    if node.tag_name != "SPAN":
        return node
    for ancestor in document.ancestors(node):
        if ancestor.tag_name in INTERACTIVE_TAGS:
            return ancestor
    return node


def extract_text(node: ElementNode) -> str:
    if node.tag_name in INTERACTIVE_TAGS:
        return node.inner_text
    return html_to_editable_text(node.inner_html)


def ensure_element_id(node: ElementNode) -> str:
    """Returns the node's DOM id, assigning a generated one when missing."""
    if not node.dom_id:
        node.set("id", f"{SYNTHETIC_ID_PREFIX}{uuid.uuid4().hex[:8]}")
    return node.dom_id


def describe(node: ElementNode) -> SelectedElement:
    element_type = classify(node)

    original_url = None
    if element_type in ("image", "video"):
        original_url = node.get("src") or node.get("data-src")

    return SelectedElement(
        id=ensure_element_id(node),
        type=element_type,
        original_url=original_url,
        metadata={
            "tagName": node.tag_name,
            "className": node.class_name,
            "text": extract_text(node) if element_type == "text" else "",
            "galleryId": node.get("data-gallery-id"),
        },
    )
