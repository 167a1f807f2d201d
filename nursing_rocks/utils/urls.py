from urllib.parse import urlsplit

from nursing_rocks.config import settings


def absolute_media_url(path: str | None) -> str | None:
    if not path:
        return None

    # already absolute → leave it
    if path.startswith("http://") or path.startswith("https://"):
        return path

    return f"{settings.BASE_URL}{path}"


def url_path(url: str | None) -> str:
    """
    Path component of a URL with query string and fragment removed.
    Relative and absolute forms of the same media path compare equal.
    """
    if not url:
        return ""
    return urlsplit(url).path
