"""
Balanced interval index over an event snapshot.

Answers "which events intersect this day" for the month grid and the
day-events dialog without scanning the whole list once per grid cell.
Intervals are closed: an event touching a day boundary counts for that day,
matching the per-day test of the segment splitter.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from .date_utils import start_of_day, end_of_day
from .event_model import Event


class _Node:
    __slots__ = ['event', 'start', 'end', 'left', 'right', 'height', 'max_end']

    def __init__(self, event: Event):
        self.event = event
        self.start = event.start_time
        self.end = event.end_time
        self.left: Optional['_Node'] = None
        self.right: Optional['_Node'] = None
        self.height = 1
        self.max_end = event.end_time


def _height(node: Optional[_Node]) -> int:
    return node.height if node is not None else 0


def _refresh(node: _Node) -> _Node:
    """Recompute height and max_end from the children."""
    node.height = 1 + max(_height(node.left), _height(node.right))
    node.max_end = max(
        [node.end] + [child.max_end for child in (node.left, node.right) if child is not None]
    )
    return node


def _lift_left(node: _Node) -> _Node:
    """Right rotation: the left child becomes the subtree root."""
    pivot = node.left
    node.left, pivot.right = pivot.right, node
    _refresh(node)
    return _refresh(pivot)


def _lift_right(node: _Node) -> _Node:
    """Left rotation: the right child becomes the subtree root."""
    pivot = node.right
    node.right, pivot.left = pivot.left, node
    _refresh(node)
    return _refresh(pivot)


def _balanced(node: _Node) -> _Node:
    _refresh(node)
    skew = _height(node.left) - _height(node.right)
    if skew > 1:
        if _height(node.left.right) > _height(node.left.left):
            node.left = _lift_right(node.left)
        return _lift_left(node)
    if skew < -1:
        if _height(node.right.left) > _height(node.right.right):
            node.right = _lift_left(node.right)
        return _lift_right(node)
    return node


def _insert(node: Optional[_Node], new: _Node) -> _Node:
    if node is None:
        return new
    # Equal starts go right, so insertion order is kept among ties
    if new.start < node.start:
        node.left = _insert(node.left, new)
    else:
        node.right = _insert(node.right, new)
    return _balanced(node)


class EventIndex:
    """AVL tree keyed by event start, each node knowing the latest end below it."""

    def __init__(self, events: Iterable[Event] = ()):
        self.root: Optional[_Node] = None
        self._size = 0
        for event in events:
            self.add(event)

    def __len__(self) -> int:
        return self._size

    def add(self, event: Event):
        self.root = _insert(self.root, _Node(event))
        self._size += 1

    def find_intersecting(self, start: datetime, end: datetime) -> list[Event]:
        """Events whose [start_time, end_time] has any overlap with [start, end], by start."""
        found = []
        stack = []
        node = self.root
        # In-order walk, pruning subtrees that end before `start`
        # and right subtrees that begin after `end`
        while stack or node is not None:
            while node is not None and node.max_end >= start:
                stack.append(node)
                node = node.left
            if not stack:
                break
            node = stack.pop()
            if node.start > end:
                break
            if node.end >= start:
                found.append(node.event)
            node = node.right
        return found

    def events_on_day(self, day: date) -> list[Event]:
        """Events intersecting the local calendar day, sorted by start time."""
        return self.find_intersecting(start_of_day(day), end_of_day(day))

    def count_on_day(self, day: date) -> int:
        return len(self.events_on_day(day))

    def verify_integrity(self):
        """Raise RuntimeError if a subtree is unbalanced or carries a stale max_end or height."""
        def _check(node: Optional[_Node]) -> tuple[int, Optional[datetime]]:
            if node is None:
                return 0, None
            lh, lmax = _check(node.left)
            rh, rmax = _check(node.right)
            if abs(lh - rh) > 1:
                raise RuntimeError(f"Unbalanced subtree at {node.start}")
            latest = max(e for e in (node.end, lmax, rmax) if e is not None)
            if node.max_end != latest or node.height != 1 + max(lh, rh):
                raise RuntimeError(f"Stale augmentation at {node.start}")
            return node.height, latest

        _check(self.root)
