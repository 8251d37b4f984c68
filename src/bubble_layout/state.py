"""
Simulation state: one body per item.

Bodies are stored column-wise in numpy arrays so the force pass can work on
the whole set at once. `Body` is a per-row view for inspection and
`BodySnapshot` is the read-only record handed to the rendering layer.

Units:
    - Positions/radii: px
    - Velocities: px per tick
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence

N_DESIGNS = 5


@dataclass(frozen=True)
class BodySnapshot:
    """Read-only per-tick record sufficient to draw one circle."""
    id: str
    x: float
    y: float
    radius: float


@dataclass
class Body:
    """
    One simulated circle.

    Attributes:
        id: Item name.
        radius: Radius in px (> 0).
        x, y: Center position in px.
        vx, vy: Velocity in px per tick.
        pinned: Whether the body is held by a drag.
        design_index: Cosmetic palette slot.
    """
    id: str
    radius: float
    x: float
    y: float
    vx: float
    vy: float
    pinned: bool = False
    design_index: int = 0


@dataclass
class SimulationState:
    """
    Mutable body set.

    Attributes:
        ids: Body ids in item order.
        positions: Centers, shape (N, 2).
        velocities: Velocities, shape (N, 2).
        radii: Radii, shape (N,).
        pinned_index: Index of the pinned body, if any.
        tick: Number of completed ticks.
    """
    ids: List[str]
    positions: np.ndarray
    velocities: np.ndarray
    radii: np.ndarray
    pinned_index: Optional[int] = None
    tick: int = 0

    def __post_init__(self):
        self.positions = np.asarray(self.positions, dtype=np.float64).reshape(-1, 2)
        self.velocities = np.asarray(self.velocities, dtype=np.float64).reshape(-1, 2)
        self.radii = np.asarray(self.radii, dtype=np.float64).reshape(-1)
        n = len(self.ids)
        if not (len(self.positions) == len(self.velocities) == len(self.radii) == n):
            raise ValueError(
                f"Inconsistent body arrays: {n} ids, {len(self.positions)} positions, "
                f"{len(self.velocities)} velocities, {len(self.radii)} radii"
            )
        if n and np.any(self.radii <= 0):
            raise ValueError("Every radius must be positive")
        self._index = {body_id: i for i, body_id in enumerate(self.ids)}

    @classmethod
    def empty(cls) -> "SimulationState":
        return cls(ids=[], positions=np.zeros((0, 2)), velocities=np.zeros((0, 2)), radii=np.zeros(0))

    @classmethod
    def initialize(
        cls,
        ids: Sequence[str],
        radii: np.ndarray,
        viewport,
        rng: np.random.Generator
    ) -> "SimulationState":
        """
        Seed one body per id inside the safe inset of the viewport.

        Positions are uniform in [1.25 r, dim - 1.25 r] per axis (the center
        when that range is empty). Velocities are uniform in (-1, 1) per axis
        and never exactly zero.

        Args:
            ids: Body ids (item names).
            radii: Radius per body.
            viewport: ViewportContext with width/height.
            rng: Random generator.
        """
        radii = np.asarray(radii, dtype=np.float64)
        n = len(ids)
        extent = np.array([viewport.width, viewport.height], dtype=np.float64)

        inset = 1.25 * radii[:, None]
        lo = inset
        hi = extent[None, :] - inset
        empty = hi <= lo
        lo = np.where(empty, extent / 2.0, lo)
        hi = np.where(empty, extent / 2.0, hi)
        positions = lo + rng.random((n, 2)) * (hi - lo)

        velocities = (rng.random((n, 2)) - 0.5) * 2.0
        tiny = np.abs(velocities) < 1e-3
        velocities[tiny] = 1e-3

        return cls(ids=list(ids), positions=positions, velocities=velocities, radii=radii)

    @property
    def n_bodies(self) -> int:
        return len(self.ids)

    @property
    def pinned_mask(self) -> np.ndarray:
        mask = np.zeros(self.n_bodies, dtype=bool)
        if self.pinned_index is not None:
            mask[self.pinned_index] = True
        return mask

    def index_of(self, body_id: str) -> Optional[int]:
        return self._index.get(body_id)

    def reinitialize_radii(self, radii: np.ndarray) -> None:
        """Replace radii in place; positions and velocities are untouched."""
        radii = np.asarray(radii, dtype=np.float64).reshape(-1)
        if len(radii) != self.n_bodies:
            raise ValueError(f"Expected {self.n_bodies} radii, got {len(radii)}")
        if self.n_bodies and np.any(radii <= 0):
            raise ValueError("Every radius must be positive")
        self.radii = radii

    def pin(self, index: int) -> None:
        """Pin one body; any previously pinned body is released."""
        self.pinned_index = index
        self.velocities[index] = 0.0

    def unpin(self) -> None:
        self.pinned_index = None

    def body(self, index: int) -> Body:
        x, y = self.positions[index]
        vx, vy = self.velocities[index]
        return Body(
            id=self.ids[index],
            radius=float(self.radii[index]),
            x=float(x),
            y=float(y),
            vx=float(vx),
            vy=float(vy),
            pinned=index == self.pinned_index,
            design_index=index % N_DESIGNS
        )

    def bodies(self) -> List[Body]:
        return [self.body(i) for i in range(self.n_bodies)]

    def snapshot(self) -> List[BodySnapshot]:
        """Read-only snapshot for rendering."""
        return [
            BodySnapshot(self.ids[i], float(self.positions[i, 0]), float(self.positions[i, 1]), float(self.radii[i]))
            for i in range(self.n_bodies)
        ]

    def copy(self) -> "SimulationState":
        return SimulationState(
            ids=list(self.ids),
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            radii=self.radii.copy(),
            pinned_index=self.pinned_index,
            tick=self.tick
        )
