"""
Pure transformations over tags for display.

Nothing here touches the database: the functions take tag rows (or any
objects with the same attributes) and return pydantic view objects.
"""
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

from schemas.tag import TagNode, TagPathView, TagRead, TagTreeResponse
from schemas.validators import TAG_PATH_SEPARATOR, split_tag_path


class TagLike(Protocol):
    """Attributes read from a tag by the hierarchy builder."""

    id: int
    name: str
    parent_id: int | None
    path: str


def _is_ancestor(nodes: dict[int, TagNode], candidate_id: int, node_id: int) -> bool:
    """True if `candidate_id` appears in the parent_id chain above `node_id`."""
    seen: set[int] = set()
    current = nodes.get(node_id)
    while current is not None and current.parent_id is not None:
        if current.parent_id == candidate_id:
            return True
        if current.parent_id in seen:
            return False
        seen.add(current.parent_id)
        current = nodes.get(current.parent_id)
    return False


def to_forest(tags: Sequence[TagLike]) -> list[TagNode]:
    """
    Build a forest from a flat tag list using `parent_id` links.

    Tags without a parent, or whose parent is not in the input (orphans left
    behind by a deleted tag), become roots. Sibling order follows input
    order. Every input tag appears exactly once; a link that would close a
    cycle is dropped and the tag is made a root instead.
    """
    nodes: dict[int, TagNode] = {}
    for tag in tags:
        if tag.id not in nodes:
            nodes[tag.id] = TagNode.model_validate(tag, from_attributes=True)

    roots: list[TagNode] = []
    placed: set[int] = set()
    for tag in tags:
        if tag.id in placed:
            continue
        placed.add(tag.id)
        node = nodes[tag.id]
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if (
            parent is None
            or parent.id == node.id
            or _is_ancestor(nodes, node.id, parent.id)
        ):
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def is_standalone(node: TagNode) -> bool:
    """A standalone tag is a flat root with no children and no separator."""
    return (
        node.parent_id is None
        and not node.children
        and TAG_PATH_SEPARATOR not in node.name
        and TAG_PATH_SEPARATOR not in node.path
    )


def partition(forest: Sequence[TagNode]) -> TagTreeResponse:
    """Split a forest into standalone chips and hierarchical menus."""
    standalone: list[TagNode] = []
    hierarchical: list[TagNode] = []
    for node in forest:
        if is_standalone(node):
            standalone.append(node)
        else:
            hierarchical.append(node)
    return TagTreeResponse(standalone=standalone, hierarchical=hierarchical)


def build_tag_path_view(
    path: str,
    leaf_tag_id: int,
    now: datetime | None = None,
) -> TagPathView:
    """
    Expand a stored tag-path string into a breadcrumb chain.

    Segment i gets the pseudo id `leaf_tag_id + i` and points at the
    previous segment's pseudo id. These ids are for rendering only and do
    not refer to stored tags.
    """
    now = now or datetime.now(UTC)
    segments = split_tag_path(path) or [path]
    chain = [
        TagRead(
            id=leaf_tag_id + i,
            name=name,
            parent_id=leaf_tag_id + i - 1 if i > 0 else None,
            level=i + 1,
            path=TAG_PATH_SEPARATOR.join(segments[: i + 1]),
            color=None,
            created_at=now,
            updated_at=now,
        )
        for i, name in enumerate(segments)
    ]
    return TagPathView(path=path, tags=chain, leaf_tag=chain[-1])
