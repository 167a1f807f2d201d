import logging
from typing import Callable, List, Optional

from nursing_rocks.client.api import AdminApiClient, ApiError
from nursing_rocks.client.notifications import Notifier
from nursing_rocks.client.overlay import SELECTED_CLASS
from nursing_rocks.config import settings
from nursing_rocks.core.edit_store import AdminEditStore
from nursing_rocks.core.image_replacement import (
    EXTERNAL_IMAGE_ID,
    PLACEHOLDER_IMAGE_ID,
    apply_replacement,
)
from nursing_rocks.core.page_document import ElementNode, PageDocument


logger = logging.getLogger(__name__)

IMAGE_REPLACED = "image-replaced"


def _entity_id(value: Optional[str]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return EXTERNAL_IMAGE_ID


class ImageReplacementDialog:
    def __init__(self, document: PageDocument, store: AdminEditStore, api: AdminApiClient,
                 notifier: Optional[Notifier] = None, placeholder_url: Optional[str] = None):
        self.document = document
        self.store = store
        self.api = api
        self.notifier = notifier or Notifier()
        self.placeholder_url = placeholder_url or settings.PLACEHOLDER_IMAGE_URL

        self.gallery: List[dict] = []
        self.selected_image_id: Optional[int] = None
        self._listeners: List[Callable[[str, dict], None]] = []

    def subscribe(self, listener: Callable[[str, dict], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load_gallery(self) -> List[dict]:
        try:
            self.gallery = self.api.list_gallery()
        except ApiError as e:
            self.notifier.error("Error loading gallery", e.message)
            self.gallery = []
        return self.gallery

    def choose(self, image_id: int) -> None:
        self.selected_image_id = image_id

    def replace(self) -> Optional[List[ElementNode]]:
        if self.selected_image_id is None:
            self.notifier.error("No image selected", "Please select an image first")
            return None

        selected = self.store.state.selected
        if selected is None:
            self.notifier.error("Error replacing image", "No element is selected")
            return None

        gallery_id = selected.metadata.get("galleryId")
        original_url = selected.original_url

        if self.selected_image_id == PLACEHOLDER_IMAGE_ID:
            new_url = self.placeholder_url
        else:
            try:
                result = self.api.replace_image(_entity_id(gallery_id), self.selected_image_id, original_url)
            except ApiError as e:
                self.notifier.error("Error replacing image", e.message)
                return None
            new_url = result["image_url"]

        nodes = apply_replacement(self.document, gallery_id, original_url, new_url)
        logger.info("Replaced %d image(s) showing %s", len(nodes), original_url)

        self.notifier.toast("Image replaced", "The image has been successfully replaced")

        payload = {"elementId": gallery_id or str(EXTERNAL_IMAGE_ID), "originalUrl": original_url}
        for listener in list(self._listeners):
            listener(IMAGE_REPLACED, payload)

        for node in self.document.query_by_attribute("class"):
            node.remove_class(SELECTED_CLASS)
        self.store.clear_selection()
        self.selected_image_id = None

        return nodes
