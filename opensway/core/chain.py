"""
Chain Builder - Orders an unordered pin selection into a root-to-tip chain

The physics coupling of a chain depends on each link's parent, so the order
matters. Two root conventions are supported:

- TOPMOST: the pin with the smallest y wins; among pins whose y is within
  ROOT_TIE_TOLERANCE of that minimum, the smallest x wins.
- FIRST_SELECTED: the first pin in selection order is the root.

From the root the chain is grown greedily: the unvisited pin nearest to the
current tail is appended next. This is O(n^2), which is fine for the handful
of pins a rig carries.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import InsufficientPinsError
from .utils import Vec2

logger = logging.getLogger(__name__)

ROOT_TIE_TOLERANCE = 10.0
MIN_CHAIN_PINS = 2


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class AnchorPoint:
    """A rig control point with its rest position at bind time"""
    name: str
    position: Vec2
    selected: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'AnchorPoint':
        return cls(
            name=str(data['name']),
            position=Vec2.from_sequence(data['position']),
            selected=bool(data.get('selected', False)),
        )


@dataclass(frozen=True)
class ChainLink:
    """One link of a chain. The parent is referenced by index, never by object."""
    index: int
    anchor: AnchorPoint
    parent_index: Optional[int]
    rest_length: float

    @property
    def name(self) -> str:
        return self.anchor.name

    @property
    def rest_position(self) -> Vec2:
        return self.anchor.position

    @property
    def is_root(self) -> bool:
        return self.parent_index is None


@dataclass(frozen=True)
class Chain:
    """Ordered, immutable sequence of links (root first)"""
    links: Tuple[ChainLink, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.links)

    def __iter__(self):
        return iter(self.links)

    def __getitem__(self, index: int) -> ChainLink:
        return self.links[index]

    @property
    def names(self) -> List[str]:
        return [link.name for link in self.links]

    @property
    def rest_positions(self) -> List[Vec2]:
        return [link.rest_position for link in self.links]

    @property
    def tour_length(self) -> float:
        """Sum of rest lengths, i.e. the length of the greedy tour"""
        return sum(link.rest_length for link in self.links)

    def parent_of(self, index: int) -> Optional[ChainLink]:
        parent_index = self.links[index].parent_index
        return None if parent_index is None else self.links[parent_index]

    @classmethod
    def from_points(cls, ordered: Sequence[AnchorPoint]) -> 'Chain':
        """Wrap an already ordered list of points, computing parents and rest lengths"""
        links = []
        for i, point in enumerate(ordered):
            if i == 0:
                links.append(ChainLink(0, point, None, 0.0))
            else:
                rest_length = ordered[i - 1].position.distance_to(point.position)
                links.append(ChainLink(i, point, i - 1, rest_length))
        return cls(tuple(links))

    def to_dict(self) -> dict:
        return {
            'pins': [
                {'name': link.name, 'position': link.rest_position.to_list()}
                for link in self.links
            ]
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Chain':
        return cls.from_points([AnchorPoint.from_dict(p) for p in data['pins']])


class RootStrategy(Enum):
    """How the root of a chain is chosen"""
    TOPMOST = "topmost"
    FIRST_SELECTED = "first-selected"

    @classmethod
    def parse(cls, value) -> 'RootStrategy':
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace('_', '-')
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown root strategy '{value}'. Available: {[m.value for m in cls]}")


# =============================================================================
# Builder
# =============================================================================

class ChainBuilder:
    """
    Builds a Chain from anchor points.

    Example:
        builder = ChainBuilder(RootStrategy.TOPMOST)
        chain = builder.build(points)
        chain.names  # ['root', 'mid', 'tip']
    """

    def __init__(
        self,
        root_strategy: RootStrategy = RootStrategy.TOPMOST,
        tie_tolerance: float = ROOT_TIE_TOLERANCE
    ):
        self.root_strategy = root_strategy
        self.tie_tolerance = tie_tolerance

    def build(self, points: Iterable[AnchorPoint]) -> Chain:
        """Order the points into a chain using the greedy nearest-neighbour tour"""
        usable = self._usable_points(points)
        if len(usable) < MIN_CHAIN_PINS:
            raise InsufficientPinsError("Please select at least 2 puppet pins.")

        root_index = self.select_root(usable)
        ordered = [usable[root_index]]
        remaining = usable[:root_index] + usable[root_index + 1:]

        while remaining:
            tail = ordered[-1].position
            nearest_index = 0
            nearest_dist = tail.distance_to(remaining[0].position)
            for i in range(1, len(remaining)):
                dist = tail.distance_to(remaining[i].position)
                if dist < nearest_dist:
                    nearest_dist = dist
                    nearest_index = i
            ordered.append(remaining.pop(nearest_index))

        chain = Chain.from_points(ordered)
        logger.debug("Built chain %s (tour length %.3f)", chain.names, chain.tour_length)
        return chain

    def from_order(self, points: Iterable[AnchorPoint], names: Sequence[str]) -> Chain:
        """Build a chain in an explicit, user-specified order"""
        by_name = {p.name: p for p in self._usable_points(points)}
        ordered = []
        for name in names:
            point = by_name.get(name)
            if point is None:
                logger.warning("Pin '%s' not found, skipping", name)
                continue
            if point in ordered:
                continue
            ordered.append(point)

        if len(ordered) < MIN_CHAIN_PINS:
            raise InsufficientPinsError("Could not find at least 2 of the specified pins.")
        return Chain.from_points(ordered)

    def select_root(self, points: Sequence[AnchorPoint]) -> int:
        """Index of the root point within ``points``"""
        if self.root_strategy == RootStrategy.FIRST_SELECTED:
            return 0

        # Pass 1: topmost
        min_y = min(p.position.y for p in points)

        # Pass 2: leftmost among the near-topmost
        best = None
        for i, p in enumerate(points):
            if p.position.y - min_y > self.tie_tolerance:
                continue
            if best is None or p.position.x < points[best].position.x:
                best = i
        return best

    @staticmethod
    def _usable_points(points: Iterable[AnchorPoint]) -> List[AnchorPoint]:
        usable = []
        seen = set()
        for point in points:
            if not point.position.is_finite():
                logger.warning("Ignoring pin '%s' with non-finite position", point.name)
                continue
            if point.name in seen:
                continue
            seen.add(point.name)
            usable.append(point)
        return usable
