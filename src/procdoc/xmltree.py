"""Immutable XML tree shared by the validation stages and the parser.

The input bytes are parsed once with defusedxml and converted into a tree of
frozen ``XmlNode`` objects. Each node knows its local tag name, attributes,
text, an xpath-style locator and the line/column where it starts, so later
stages can traverse the same tree concurrently without re-parsing.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from defusedxml.ElementTree import DefusedXMLParser

logger = logging.getLogger(__name__)


def local_name(name: str) -> str:
    """Strip a ``{namespace}`` prefix from an element or attribute name."""
    if name.startswith("{"):
        return name.rsplit("}", 1)[1]
    return name


@dataclass(frozen=True, eq=False)
class XmlNode:
    """A single element of a parsed process document."""
    tag: str
    xpath: str
    attributes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    text: str = ""
    children: tuple["XmlNode", ...] = ()
    line: int | None = None
    column: int | None = None

    def get(self, name: str, default: str | None = None) -> str | None:
        """Get an attribute value by local name."""
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def child(self, tag: str) -> "XmlNode | None":
        """First direct child with the given tag, or None."""
        for node in self.children:
            if node.tag == tag:
                return node
        return None

    def children_named(self, tag: str) -> tuple["XmlNode", ...]:
        return tuple(node for node in self.children if node.tag == tag)

    def child_text(self, tag: str) -> str | None:
        """Text of the first direct child with the given tag, None if absent."""
        node = self.child(tag)
        return node.text if node is not None else None

    def collection(self, container: str, item: str) -> list["XmlNode"]:
        """Items of a wrapped collection such as ``connections/connection``."""
        items: list[XmlNode] = []
        for wrapper in self.children_named(container):
            items.extend(wrapper.children_named(item))
        return items

    def find_path(self, path: str) -> "XmlNode | None":
        """Follow a slash separated chain of child tags, e.g. ``metadata/author``."""
        current: XmlNode | None = self
        for part in path.split("/"):
            if current is None:
                return None
            current = current.child(part)
        return current

    def descendants(self, tag: str | None = None) -> Iterator["XmlNode"]:
        """Iterate descendants in document order, optionally filtered by tag."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if tag is None or node.tag == tag:
                yield node
            stack.extend(reversed(node.children))

    def iter(self) -> Iterator["XmlNode"]:
        """Iterate this node and all descendants in document order."""
        yield self
        yield from self.descendants()

    @property
    def position(self) -> str:
        """Human readable position for log and error messages."""
        if self.line is None:
            return self.xpath
        return f"{self.xpath} (line {self.line})"

    def __repr__(self) -> str:
        return f"XmlNode({self.xpath!r})"


@dataclass(frozen=True)
class XmlDocument:
    """Parsed document plus the counts gathered while building it."""
    root: XmlNode
    element_count: int
    attribute_count: int

    def iter(self) -> Iterator[XmlNode]:
        return self.root.iter()


class _PositionTrackingBuilder:
    """Tree builder target that records where each element starts."""

    def __init__(self):
        self._builder = ET.TreeBuilder()
        self.parser = None
        self.positions: dict[ET.Element, tuple[int, int]] = {}

    def start(self, tag, attrs):
        element = self._builder.start(tag, attrs)
        expat = getattr(self.parser, "parser", None)
        if expat is not None:
            # expat columns are 0-based
            self.positions[element] = (expat.CurrentLineNumber, expat.CurrentColumnNumber + 1)
        return element

    def end(self, tag):
        return self._builder.end(tag)

    def data(self, data):
        self._builder.data(data)

    def close(self):
        return self._builder.close()


def parse_element_tree(data: bytes, forbid_dtd: bool = True) -> tuple[ET.Element, dict]:
    """Parse raw bytes securely into an ElementTree root.

    Raises:
        defusedxml.ElementTree.ParseError: For malformed input
        defusedxml.DefusedXmlException: For DTDs, entities or external references
    """
    target = _PositionTrackingBuilder()
    parser = DefusedXMLParser(target=target, forbid_dtd=forbid_dtd)
    target.parser = parser
    parser.feed(data)
    root = parser.close()
    return root, target.positions


def load_document(data: bytes, forbid_dtd: bool = True) -> XmlDocument:
    """Parse bytes and convert them into an immutable ``XmlDocument``.

    Args:
        data: Raw file content
        forbid_dtd: Reject documents carrying a DOCTYPE declaration

    Returns:
        XmlDocument with element and attribute counts
    """
    root, positions = parse_element_tree(data, forbid_dtd=forbid_dtd)
    element_count = 0
    attribute_count = 0

    # Post-order walk over an explicit stack; nesting depth is not limited
    # by the interpreter recursion limit.
    built: dict[int, tuple[XmlNode, str]] = {}
    stack: list[tuple[ET.Element, str, bool]] = [(root, f"/{local_name(root.tag)}", False)]
    while stack:
        element, xpath, expanded = stack.pop()

        if not expanded:
            stack.append((element, xpath, True))
            seen: dict[str, int] = {}
            paths = []
            for child in element:
                if not isinstance(child.tag, str):
                    continue
                name = local_name(child.tag)
                seen[name] = seen.get(name, 0) + 1
                paths.append((child, f"{xpath}/{name}[{seen[name]}]", False))
            stack.extend(reversed(paths))
            continue

        element_count += 1
        attribute_count += len(element.attrib)

        children = []
        text_parts = [element.text or ""]
        for child in element:
            if isinstance(child.tag, str):
                node, full_text = built.pop(id(child))
                children.append(node)
                text_parts.append(full_text)
            text_parts.append(child.tail or "")
        full_text = "".join(text_parts)

        line, column = positions.get(element, (None, None))
        built[id(element)] = (
            XmlNode(
                tag=local_name(element.tag),
                xpath=xpath,
                attributes=MappingProxyType({local_name(k): v for k, v in element.attrib.items()}),
                text=full_text.strip(),
                children=tuple(children),
                line=line,
                column=column,
            ),
            full_text,
        )

    document_root, _ = built.pop(id(root))
    logger.debug(
        f"Built document tree: {element_count} elements, {attribute_count} attributes"
    )
    return XmlDocument(
        root=document_root,
        element_count=element_count,
        attribute_count=attribute_count,
    )
