from dataclasses import dataclass, field
from typing import Dict, Optional

from nursing_rocks.client.notifications import Notifier
from nursing_rocks.core.page_document import INSERT_LOCATIONS
from nursing_rocks.core.text_content import TextStyleOptions, editable_text_to_html


NEW_ELEMENT_TAGS = ("p", "h1", "h2", "h3", "h4", "h5", "h6", "span", "div")


@dataclass
class TextEdit:
    content_html: str
    style: Dict[str, str] = field(default_factory=dict)
    element_type: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.element_type is not None


class TextEditorDialog:
    """
    Editing state for one text element. ``content`` is the plain text shown in
    the textarea; ``element_type`` and ``location`` only apply when creating a
    new element next to the selected one.
    """

    def __init__(self, notifier: Notifier, initial_text: str = "", creating_new: bool = False):
        self.notifier = notifier
        self.content = initial_text
        self.creating_new = creating_new
        self.style = TextStyleOptions()
        self.element_type = "p"
        self.location = "after"

    def save(self) -> Optional[TextEdit]:
        if not self.content.strip():
            self.notifier.error("Content Required", "Please enter content before saving")
            return None

        if not self.creating_new:
            return TextEdit(content_html=editable_text_to_html(self.content), style=self.style.to_css())

        if self.element_type not in NEW_ELEMENT_TAGS:
            self.notifier.error("Invalid Element", f"Cannot create a <{self.element_type}> element")
            return None
        if self.location not in INSERT_LOCATIONS:
            self.notifier.error("Invalid Position", f"Unknown position: {self.location}")
            return None

        return TextEdit(
            content_html=editable_text_to_html(self.content),
            style=self.style.to_css(),
            element_type=self.element_type,
            location=self.location,
        )
