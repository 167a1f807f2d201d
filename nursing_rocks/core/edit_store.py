"""
Single client-side store for admin edit mode.

Holds everything the overlay used to keep in scattered component state and
localStorage: the admin session flags, the current selection (by id, never a
node reference) and which dialog is open. The state is a pydantic model so it
can be dumped, persisted and restored as plain data.
"""

from typing import Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel

from nursing_rocks.core.element_selection import SelectedElement

# Browser-local keys mirrored by the store
ADMIN_TOKEN_KEY = "adminToken"
IS_ADMIN_KEY = "isAdmin"
ADMIN_PIN_VERIFIED_KEY = "adminPinVerified"
EDIT_MODE_KEY = "editMode"
TOKEN_KEY = "token"

ADMIN_MODE_CHANGED = "admin-mode-changed"
SELECTION_CHANGED = "selection-changed"


class AdminEditState(BaseModel):
    admin_token: Optional[str] = None
    token: Optional[str] = None
    is_admin: bool = False
    admin_pin_verified: bool = False
    edit_mode: bool = False

    selected: Optional[SelectedElement] = None
    hovered_id: Optional[str] = None

    image_dialog_open: bool = False
    text_dialog_open: bool = False
    creating_new_text: bool = False
    text_content: str = ""

    universal_selection_enabled: bool = False


def _flag(value: Optional[str]) -> bool:
    return value == "true"


class AdminEditStore:
    def __init__(self, state: Optional[AdminEditState] = None):
        self.state = state or AdminEditState()
        self._listeners: List[Callable[[str, AdminEditState], None]] = []

    # ==========================================================
    # PERSISTENCE
    # ==========================================================
    @classmethod
    def from_local_storage(cls, storage: Mapping[str, str]) -> "AdminEditStore":
        return cls(AdminEditState(
            admin_token=storage.get(ADMIN_TOKEN_KEY) or None,
            token=storage.get(TOKEN_KEY) or None,
            is_admin=_flag(storage.get(IS_ADMIN_KEY)),
            admin_pin_verified=_flag(storage.get(ADMIN_PIN_VERIFIED_KEY)),
            edit_mode=_flag(storage.get(EDIT_MODE_KEY)),
        ))

    def to_local_storage(self) -> Dict[str, str]:
        s = self.state
        out = {
            IS_ADMIN_KEY: "true" if s.is_admin else "false",
            ADMIN_PIN_VERIFIED_KEY: "true" if s.admin_pin_verified else "false",
            EDIT_MODE_KEY: "true" if s.edit_mode else "false",
        }
        if s.admin_token:
            out[ADMIN_TOKEN_KEY] = s.admin_token
        if s.token:
            out[TOKEN_KEY] = s.token
        return out

    def dump(self) -> dict:
        return self.state.model_dump()

    # ==========================================================
    # SUBSCRIPTIONS
    # ==========================================================
    def subscribe(self, listener: Callable[[str, AdminEditState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.state)

    # ==========================================================
    # SESSION
    # ==========================================================
    @property
    def auth_token(self) -> Optional[str]:
        return self.state.admin_token or self.state.token

    @property
    def is_admin_mode(self) -> bool:
        return self.state.is_admin and self.state.edit_mode

    def login_admin(self, token: str) -> None:
        self.state.admin_token = token
        self.state.is_admin = True

    def verify_pin(self) -> None:
        self.state.admin_pin_verified = True

    def clear_admin_session(self) -> None:
        """Forget admin credentials after the API rejected them."""
        was_admin_mode = self.is_admin_mode
        self.state.admin_token = None
        self.state.is_admin = False
        self.state.admin_pin_verified = False
        self.clear_selection()
        if was_admin_mode:
            self._emit(ADMIN_MODE_CHANGED)

    def set_admin_mode(self, enabled: bool) -> None:
        if enabled and not self.state.is_admin:
            raise PermissionError("Admin login required before enabling edit mode")
        self.state.edit_mode = enabled
        if not enabled:
            self.clear_selection()
        self._emit(ADMIN_MODE_CHANGED)

    def toggle_admin_mode(self) -> bool:
        self.set_admin_mode(not self.state.edit_mode)
        return self.state.edit_mode

    # ==========================================================
    # SELECTION
    # ==========================================================
    def select(self, element: SelectedElement) -> None:
        self.state.selected = element
        self._emit(SELECTION_CHANGED)

    def clear_selection(self) -> None:
        self.state.selected = None
        self.state.hovered_id = None
        self.state.image_dialog_open = False
        self.state.text_dialog_open = False
        self.state.creating_new_text = False
        self.state.text_content = ""
        self._emit(SELECTION_CHANGED)

    def set_hovered(self, element_id: Optional[str]) -> None:
        self.state.hovered_id = element_id

    def set_universal_selection(self, enabled: bool) -> None:
        self.state.universal_selection_enabled = enabled

    # ==========================================================
    # DIALOGS
    # ==========================================================
    def open_image_dialog(self) -> None:
        self.state.image_dialog_open = True

    def close_image_dialog(self) -> None:
        self.state.image_dialog_open = False

    def open_text_dialog(self, content: str) -> None:
        self.state.text_dialog_open = True
        self.state.creating_new_text = False
        self.state.text_content = content

    def open_new_text_dialog(self) -> None:
        self.state.text_dialog_open = True
        self.state.creating_new_text = True
        self.state.text_content = ""

    def close_text_dialog(self) -> None:
        self.state.text_dialog_open = False
        self.state.creating_new_text = False

    def update_text_content(self, content: str) -> None:
        self.state.text_content = content
