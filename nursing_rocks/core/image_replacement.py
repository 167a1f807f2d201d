import time
from typing import List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from nursing_rocks.core.page_document import ElementNode, PageDocument
from nursing_rocks.utils.urls import url_path


# Gallery pick that stands for "use the site placeholder image"
PLACEHOLDER_IMAGE_ID = -999

# Original element that has no gallery row behind it
EXTERNAL_IMAGE_ID = -1

CACHE_BUST_PARAM = "v"


def same_image_path(a: Optional[str], b: Optional[str]) -> bool:
    """Exact path equality with query string and fragment ignored."""
    path_a, path_b = url_path(a), url_path(b)
    return bool(path_a) and path_a == path_b


def with_cache_buster(url: str, stamp: Optional[int] = None) -> str:
    stamp = stamp if stamp is not None else int(time.time() * 1000)
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != CACHE_BUST_PARAM]
    query.append((CACHE_BUST_PARAM, str(stamp)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def matching_images(document: PageDocument, element_id: Optional[str],
                    original_url: Optional[str]) -> List[ElementNode]:
    """
    Images to update for a replacement: those tagged with the gallery entity id,
    then any <img> showing the same path as the original.
    """
    matches: List[ElementNode] = []
    seen = set()

    if element_id not in (None, "", str(EXTERNAL_IMAGE_ID)):
        for node in document.query_by_attribute("data-gallery-id", str(element_id)):
            matches.append(node)
            seen.add(node.node_id)

    if original_url:
        for node in document.query("img"):
            if node.node_id not in seen and same_image_path(node.get("src"), original_url):
                matches.append(node)
                seen.add(node.node_id)

    return matches


def apply_replacement(document: PageDocument, element_id: Optional[str], original_url: Optional[str],
                      new_url: str) -> List[ElementNode]:
    nodes = matching_images(document, element_id, original_url)
    src = with_cache_buster(new_url)

    for node in nodes:
        node.set("src", src)

    return nodes
