from __future__ import annotations

from typing import Iterable, List, Tuple

from .models import Node

DEFAULT_LIMIT = 12


def _rank(node: Node, q: str) -> int | None:
    """0 = title match, 1 = id match, 2 = description only; None = no match."""
    if q in node.title.lower():
        return 0
    if q in node.id.lower():
        return 1
    if q in node.description.lower():
        return 2
    return None


def search_nodes(nodes: Iterable[Node], query: str, limit: int = DEFAULT_LIMIT) -> List[str]:
    """Case-insensitive substring search over title, id and description.

    Title hits come first, then id hits, then description hits; dataset order
    is kept within each group. A blank query matches nothing.
    """
    q = (query or "").strip().lower()
    if not q or limit <= 0:
        return []

    hits: List[Tuple[int, int, str]] = []
    for pos, node in enumerate(nodes):
        rank = _rank(node, q)
        if rank is not None:
            hits.append((rank, pos, node.id))
    hits.sort()
    return [node_id for _, _, node_id in hits[:limit]]
