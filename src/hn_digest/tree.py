# ABOUTME: Rebuilds the nested comment forest from a flat comment list for display.
# ABOUTME: Comments whose parent is missing from the list are promoted to roots.

from collections.abc import Iterator, Sequence

from hn_digest.models import Comment, CommentNode


def build_comment_tree(comments: Sequence[Comment]) -> list[CommentNode]:
    """Nest comments under their parents, keeping input order for roots and children.

    A comment whose parent_id is unset, points at a comment that is not in
    the list, or leads back to itself through its ancestors, becomes a root.
    Repeated remote ids keep the first occurrence.
    """
    nodes: dict[int, CommentNode] = {}
    ordered: list[CommentNode] = []
    for comment in comments:
        if comment.remote_comment_id in nodes:
            continue
        node = CommentNode.model_validate({**comment.model_dump(), "children": []})
        nodes[comment.remote_comment_id] = node
        ordered.append(node)

    roots: list[CommentNode] = []
    for node in ordered:
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is not None and not _in_cycle(node, nodes):
            parent.children.append(node)
        else:
            roots.append(node)
    return roots


def _in_cycle(node: CommentNode, nodes: dict[int, CommentNode]) -> bool:
    """True when following parent links from `node` leads back to it."""
    seen: set[int] = set()
    current = node
    while current.parent_id is not None and current.parent_id in nodes:
        if current.parent_id == node.remote_comment_id:
            return True
        if current.parent_id in seen:
            return False
        seen.add(current.parent_id)
        current = nodes[current.parent_id]
    return False


def iter_tree(nodes: Sequence[CommentNode], depth: int = 0) -> Iterator[tuple[int, CommentNode]]:
    """Depth-first walk yielding (depth, node) pairs in display order."""
    for node in nodes:
        yield depth, node
        yield from iter_tree(node.children, depth + 1)
