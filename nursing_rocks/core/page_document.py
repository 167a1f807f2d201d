"""
In-memory model of a rendered page for the admin overlay.

Nodes are addressed by a registry key (``node_id``) that plays the part of
node identity, and by their ``id`` attribute (the DOM id). Selections only
keep the DOM id and look the node up again on demand.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from nursing_rocks.core.text_content import format_style, html_to_editable_text, parse_style


logger = logging.getLogger(__name__)

INSERT_LOCATIONS = ("before", "after", "append", "prepend")

_node_ids = itertools.count(1)


@dataclass
class ElementNode:
    tag_name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    inner_html: str = ""
    node_id: int = field(default_factory=lambda: next(_node_ids))
    parent_id: Optional[int] = None
    children: List[int] = field(default_factory=list)

    def __post_init__(self):
        self.tag_name = self.tag_name.upper()

    # -----------------------------
    # Attributes
    # -----------------------------
    @property
    def dom_id(self) -> Optional[str]:
        return self.attributes.get("id") or None

    @property
    def class_name(self) -> str:
        return self.attributes.get("class", "")

    @property
    def inner_text(self) -> str:
        return html_to_editable_text(self.inner_html)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def set(self, name: str, value) -> None:
        self.attributes[name] = str(value)

    # -----------------------------
    # Classes
    # -----------------------------
    def has_class(self, name: str) -> bool:
        return name in self.class_name.split()

    def add_class(self, name: str) -> None:
        classes = self.class_name.split()
        if name not in classes:
            classes.append(name)
        self.attributes["class"] = " ".join(classes)

    def remove_class(self, name: str) -> None:
        classes = [c for c in self.class_name.split() if c != name]
        if classes:
            self.attributes["class"] = " ".join(classes)
        else:
            self.attributes.pop("class", None)

    # -----------------------------
    # Inline style
    # -----------------------------
    @property
    def style(self) -> Dict[str, str]:
        return parse_style(self.attributes.get("style"))

    def set_style(self, props: Dict[str, str]) -> None:
        merged = self.style
        merged.update(props)
        if merged:
            self.attributes["style"] = format_style(merged)


class PageDocument:
    def __init__(self, page: str = ""):
        self.page = page
        self._nodes: Dict[int, ElementNode] = {}
        self._roots: List[int] = []
        self._pending: List[Callable[[], None]] = []

    def __iter__(self) -> Iterator[ElementNode]:
        return iter(self.walk())

    def __len__(self) -> int:
        return len(self._nodes)

    # ==========================================================
    # BUILD
    # ==========================================================
    @classmethod
    def from_elements(cls, page: str, records: Iterable[dict]) -> "PageDocument":
        """
        Build a document from persisted page element records (the
        ``/api/pages/{page}/elements`` payload).
        """
        doc = cls(page)
        ordered = sorted(records, key=lambda r: (r.get("position") or 0))
        pending = list(ordered)

        # parents may come after their children in position order
        while pending:
            progressed = False
            for record in list(pending):
                parent_key = record.get("parent_key")
                parent = doc.find_by_dom_id(parent_key) if parent_key else None
                if parent_key and parent is None:
                    continue
                doc.add(cls._node_from_record(record), parent=parent)
                pending.remove(record)
                progressed = True
            if not progressed:
                # orphans attach at the root
                for record in pending:
                    logger.warning("Parent %s missing for %s", record.get("parent_key"), record.get("element_key"))
                    doc.add(cls._node_from_record(record))
                break

        return doc

    @staticmethod
    def _node_from_record(record: dict) -> ElementNode:
        attributes = {"id": record["element_key"]}
        if record.get("style"):
            attributes["style"] = record["style"]
        if record.get("image_url"):
            attributes["src"] = record["image_url"]
        if record.get("gallery_image_id") is not None:
            attributes["data-gallery-id"] = str(record["gallery_image_id"])
        return ElementNode(
            tag_name=record.get("tag_name") or "div",
            attributes=attributes,
            inner_html=record.get("content_html") or "",
        )

    def add(self, node: ElementNode, parent: Optional[ElementNode] = None,
            position: Optional[int] = None) -> ElementNode:
        self._nodes[node.node_id] = node
        siblings = parent.children if parent else self._roots
        node.parent_id = parent.node_id if parent else None
        if position is None:
            siblings.append(node.node_id)
        else:
            siblings.insert(position, node.node_id)
        return node

    def insert_relative(self, node: ElementNode, target: ElementNode, location: str) -> ElementNode:
        if location not in INSERT_LOCATIONS:
            raise ValueError(f"Unknown insert location: {location}")

        if location == "append":
            return self.add(node, parent=target)
        if location == "prepend":
            return self.add(node, parent=target, position=0)

        parent = self.parent(target)
        siblings = parent.children if parent else self._roots
        index = siblings.index(target.node_id)
        if location == "after":
            index += 1
        return self.add(node, parent=parent, position=index)

    def remove(self, node: ElementNode) -> None:
        for child_id in list(node.children):
            self.remove(self._nodes[child_id])
        parent = self.parent(node)
        siblings = parent.children if parent else self._roots
        siblings.remove(node.node_id)
        del self._nodes[node.node_id]

    # ==========================================================
    # LOOKUP
    # ==========================================================
    def get(self, node_id: int) -> Optional[ElementNode]:
        return self._nodes.get(node_id)

    def find_by_dom_id(self, dom_id: Optional[str]) -> Optional[ElementNode]:
        if not dom_id:
            return None
        for node in self._nodes.values():
            if node.dom_id == dom_id:
                return node
        return None

    def parent(self, node: ElementNode) -> Optional[ElementNode]:
        if node.parent_id is None:
            return None
        return self._nodes.get(node.parent_id)

    def ancestors(self, node: ElementNode) -> Iterator[ElementNode]:
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def children(self, node: ElementNode) -> List[ElementNode]:
        return [self._nodes[c] for c in node.children]

    def position_of(self, node: ElementNode) -> int:
        parent = self.parent(node)
        siblings = parent.children if parent else self._roots
        return siblings.index(node.node_id)

    def walk(self) -> List[ElementNode]:
        """Nodes in document order."""
        out: List[ElementNode] = []

        def visit(ids):
            for node_id in ids:
                node = self._nodes[node_id]
                out.append(node)
                visit(node.children)

        visit(self._roots)
        return out

    def query(self, tag_name: str) -> List[ElementNode]:
        tag_name = tag_name.upper()
        return [n for n in self.walk() if n.tag_name == tag_name]

    def query_by_attribute(self, name: str, value: Optional[str] = None) -> List[ElementNode]:
        return [
            n for n in self.walk()
            if name in n.attributes and (value is None or n.attributes[name] == value)
        ]

    # ==========================================================
    # DEFERRED WRITES
    # ==========================================================
    def schedule(self, write: Callable[[], None]) -> None:
        """Queue a visual write for the next flush."""
        self._pending.append(write)

    @property
    def has_pending_writes(self) -> bool:
        return bool(self._pending)

    def flush(self) -> int:
        writes, self._pending = self._pending, []
        for write in writes:
            write()
        return len(writes)
