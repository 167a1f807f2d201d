"""
Click-to-edit overlay for admin edit mode.

Hover and selection are shown with CSS classes on the page nodes; what is
selected lives in the edit store as a ``SelectedElement`` (by DOM id).
"""

import logging
from typing import Literal, Optional

from nursing_rocks.client.api import AdminApiClient, ApiError
from nursing_rocks.client.notifications import Notifier
from nursing_rocks.client.text_editor import TextEdit, TextEditorDialog
from nursing_rocks.core.edit_store import ADMIN_MODE_CHANGED, AdminEditStore
from nursing_rocks.core.element_selection import describe, ensure_element_id, resolve_target
from nursing_rocks.core.page_document import ElementNode, PageDocument


logger = logging.getLogger(__name__)

HOVER_CLASS = "nr-edit-hover"
SELECTED_CLASS = "nr-edit-selected"

ClickAction = Literal["image-dialog", "text-dialog", "generic", "deselected"]


class SelectionOverlay:
    def __init__(self, document: PageDocument, store: AdminEditStore, api: AdminApiClient,
                 notifier: Optional[Notifier] = None):
        self.document = document
        self.store = store
        self.api = api
        self.notifier = notifier or Notifier()
        self.attached = False

        self._unsubscribe = store.subscribe(self._on_store_event)
        if store.is_admin_mode:
            self.attach()

    def _on_store_event(self, event, state) -> None:
        if event != ADMIN_MODE_CHANGED:
            return
        if self.store.is_admin_mode:
            self.attach()
        else:
            self.detach()

    def close(self) -> None:
        self.detach()
        self._unsubscribe()

    # ==========================================================
    # ATTACH / DETACH
    # ==========================================================
    def attach(self) -> None:
        self.attached = True

    def detach(self) -> None:
        if not self.attached:
            return
        self.attached = False

        for node in self.document.walk():
            node.remove_class(HOVER_CLASS)
            node.remove_class(SELECTED_CLASS)
        self.store.clear_selection()

    # ==========================================================
    # HOVER
    # ==========================================================
    def hover(self, node: ElementNode) -> None:
        if not self.attached:
            return
        try:
            target = resolve_target(self.document, node)
            target.add_class(HOVER_CLASS)
            self.store.set_hovered(ensure_element_id(target))
        except (AttributeError, KeyError, ValueError) as e:
            logger.warning("Could not highlight element: %s", e)

    def unhover(self, node: ElementNode) -> None:
        if not self.attached:
            return
        try:
            target = resolve_target(self.document, node)
            target.remove_class(HOVER_CLASS)
            if self.store.state.hovered_id == target.dom_id:
                self.store.set_hovered(None)
        except (AttributeError, KeyError, ValueError) as e:
            logger.warning("Could not clear highlight: %s", e)

    # ==========================================================
    # SELECTION
    # ==========================================================
    def selected_node(self) -> Optional[ElementNode]:
        selected = self.store.state.selected
        if selected is None:
            return None
        return self.document.find_by_dom_id(selected.id)

    def deselect(self) -> None:
        node = self.selected_node()
        if node is not None:
            node.remove_class(SELECTED_CLASS)
        self.store.clear_selection()

    def _replace_selection(self, target: ElementNode, element) -> None:
        previous = self.selected_node()
        if previous is not None:
            previous.remove_class(SELECTED_CLASS)
        target.add_class(SELECTED_CLASS)
        self.store.select(element)

    def click(self, node: ElementNode) -> Optional[ClickAction]:
        if not self.attached:
            return None

        try:
            target = resolve_target(self.document, node)

            current = self.store.state.selected
            if current is not None and current.id == target.dom_id:
                self.deselect()
                return "deselected"

            element = describe(target)
            target.remove_class(HOVER_CLASS)
        except (AttributeError, KeyError, ValueError) as e:
            logger.warning("Could not select element: %s", e)
            return None

        if element.type == "image":
            self._replace_selection(target, element)
            self.store.open_image_dialog()
            return "image-dialog"

        if element.type == "text":
            self._replace_selection(target, element)
            self.store.open_text_dialog(element.metadata["text"])
            return "text-dialog"

        if self.store.state.universal_selection_enabled:
            self._replace_selection(target, element)
        else:
            self.deselect()

        self.notifier.toast(
            "Element selected",
            f"{element.metadata['tagName'].lower()} elements can't be edited here yet",
        )
        return "generic"

    # ==========================================================
    # TEXT EDITING
    # ==========================================================
    def open_text_editor(self) -> TextEditorDialog:
        state = self.store.state
        return TextEditorDialog(self.notifier, state.text_content, creating_new=state.creating_new_text)

    def apply_text_edit(self, edit: TextEdit) -> Optional[ElementNode]:
        """
        Write ``edit`` into the page (in place, or as a new sibling/child of
        the selected element) and persist it. The local write is kept even
        when saving fails.
        """
        target = self.selected_node()
        if target is None:
            self.notifier.error("Error Updating Text", "The selected element is no longer on the page")
            return None

        if edit.is_new:
            written = ElementNode(tag_name=edit.element_type, inner_html=edit.content_html)
            ensure_element_id(written)
            if edit.style:
                written.set_style(edit.style)
            self.document.schedule(
                lambda: self.document.insert_relative(written, target, edit.location)
            )
        else:
            written = target

            def write():
                target.inner_html = edit.content_html
                if edit.style:
                    target.set_style(edit.style)

            self.document.schedule(write)

        try:
            self.document.flush()
        except (AttributeError, KeyError, ValueError) as e:
            logger.warning("Could not write text edit: %s", e)
            return None

        try:
            if edit.is_new:
                self.api.create_element(
                    self.document.page,
                    written.dom_id,
                    tag_name=edit.element_type,
                    content_html=edit.content_html,
                    style=written.get("style"),
                    target_key=target.dom_id,
                    location=edit.location,
                )
            else:
                self.api.save_element(
                    self.document.page,
                    target.dom_id,
                    content_html=edit.content_html,
                    style=target.get("style"),
                    tag_name=target.tag_name.lower(),
                )
        except ApiError as e:
            self.notifier.error("Error Updating Text", e.message)
        else:
            self.notifier.toast("Content Updated", "The text has been successfully updated")

        self.store.close_text_dialog()
        return written
