import logging
from dataclasses import dataclass
from typing import List, Literal, Optional


logger = logging.getLogger(__name__)

ToastVariant = Literal["default", "destructive"]


@dataclass
class Toast:
    title: str
    description: str = ""
    variant: ToastVariant = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


class Notifier:
    """Collects toasts shown to the admin. Errors are also logged."""

    def __init__(self):
        self.toasts: List[Toast] = []

    def toast(self, title: str, description: str = "", variant: ToastVariant = "default") -> Toast:
        toast = Toast(title=title, description=description, variant=variant)
        self.toasts.append(toast)

        if toast.is_error:
            logger.warning("%s: %s", title, description)
        else:
            logger.info("%s: %s", title, description)

        return toast

    def error(self, title: str, description: str) -> Toast:
        return self.toast(title, description, variant="destructive")

    @property
    def last(self) -> Optional[Toast]:
        return self.toasts[-1] if self.toasts else None

    def clear(self) -> None:
        self.toasts = []
