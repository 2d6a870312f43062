"""
Spring-Damper Chain Physics

Verlet integration of a linear chain of points, each connected by a spring to
its parent. The host evaluates bindings on demand, at arbitrary and often
non-monotonic times (scrubbing), and offers no place to keep state between
calls. Every query therefore replays the simulation from rest at t = 0 up to
the requested frame. The replay is capped at MAX_PHYSICS_FRAMES steps; later
times see the state the cap reached.

Per step, for each link from root to tip:

    target  = parent_position + (rest - parent_rest)
    accel   = (target - pos) * stiffness * SPRING_SCALE + (0, gravity * GRAVITY_SCALE)
    vel     = (pos - prev) * clamp(1 - damping * DAMPING_SCALE, 0, 1)
    new_pos = pos + vel + accel * dt^2

after which the link is kept within STRETCH_LIMIT * rest_length of its parent.
The root is its own parent target with a rest length of 0, so it stays pinned.
"""

import math
from typing import List

from .chain import Chain
from .params import ControlParameterSet
from .utils import MathUtils, Vec2


# =============================================================================
# Constants
# =============================================================================

MAX_PHYSICS_FRAMES = 500      # Replay cap per evaluation
STRETCH_LIMIT = 1.5           # Max distance to parent, in rest lengths
SPRING_SCALE = 0.5            # Stiffness slider -> spring constant
DAMPING_SCALE = 0.05          # Damping slider -> velocity loss per step
FULL_DAMPING = 1.0 / DAMPING_SCALE  # Slider value from which no velocity carries over
GRAVITY_SCALE = 0.1           # Gravity slider -> acceleration
DEFAULT_FRAME_RATE = 24.0
FRAME_EPSILON = 1e-9          # Keeps t = i / fps from flooring to i - 1


def velocity_retention(damping: float) -> float:
    """
    Share of the previous step's velocity a link keeps.

    The raw factor 1 - damping * DAMPING_SCALE goes negative above
    FULL_DAMPING and diverges past twice that, so it is clamped to [0, 1].
    At FULL_DAMPING and above (every built-in preset) links carry no
    velocity and move only by the current step's spring and gravity forces.
    """
    return MathUtils.clamp(1.0 - damping * DAMPING_SCALE)


class ChainSimulator:
    """
    Stateless replay of the chain simulation.

    Example:
        sim = ChainSimulator(chain, params, frame_rate=24)
        positions = sim.positions_at(2.0)   # one Vec2 per link
    """

    def __init__(
        self,
        chain: Chain,
        params: ControlParameterSet,
        frame_rate: float = DEFAULT_FRAME_RATE,
        max_frames: int = MAX_PHYSICS_FRAMES
    ):
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")
        self.chain = chain
        self.params = params
        self.frame_rate = float(frame_rate)
        self.max_frames = max_frames

    @property
    def dt(self) -> float:
        return 1.0 / self.frame_rate

    def steps_for_time(self, t: float) -> int:
        """Number of integration steps for time ``t``: min(floor(t / dt), cap)"""
        if t <= 0:
            return 0
        return min(int(math.floor(t * self.frame_rate + FRAME_EPSILON)), self.max_frames)

    def cap_time(self) -> float:
        """Earliest time at which the replay reaches the cap"""
        return self.max_frames / self.frame_rate

    def positions_at(self, t: float, upto: int = None) -> List[Vec2]:
        return self.simulate(self.steps_for_time(t), upto)

    def simulate(self, steps: int, upto: int = None) -> List[Vec2]:
        """
        Run ``steps`` integration steps from rest with zero velocity.

        Args:
            steps: Number of steps
            upto: Only simulate links 0..upto (children never affect parents)

        Returns:
            Simulated positions of the simulated links
        """
        links = self.chain.links
        count = len(links) if upto is None else min(upto + 1, len(links))

        rest_x = [links[i].rest_position.x for i in range(count)]
        rest_y = [links[i].rest_position.y for i in range(count)]
        max_len = [links[i].rest_length * STRETCH_LIMIT for i in range(count)]
        parents = [links[i].parent_index for i in range(count)]

        pos_x = list(rest_x)
        pos_y = list(rest_y)
        prev_x = list(rest_x)
        prev_y = list(rest_y)

        dt2 = self.dt * self.dt
        k = self.params.stiffness * SPRING_SCALE
        gravity = self.params.gravity * GRAVITY_SCALE
        damping = velocity_retention(self.params.damping)

        for _ in range(steps):
            for i in range(count):
                p = parents[i]
                if p is None:
                    anchor_x, anchor_y = rest_x[i], rest_y[i]
                    target_x, target_y = anchor_x, anchor_y
                else:
                    # Parent already advanced this step
                    anchor_x, anchor_y = pos_x[p], pos_y[p]
                    target_x = anchor_x + (rest_x[i] - rest_x[p])
                    target_y = anchor_y + (rest_y[i] - rest_y[p])

                ax = (target_x - pos_x[i]) * k
                ay = (target_y - pos_y[i]) * k + gravity

                vx = (pos_x[i] - prev_x[i]) * damping
                vy = (pos_y[i] - prev_y[i]) * damping

                new_x = pos_x[i] + vx + ax * dt2
                new_y = pos_y[i] + vy + ay * dt2

                # Distance constraint
                dx = new_x - anchor_x
                dy = new_y - anchor_y
                dist = math.sqrt(dx * dx + dy * dy)
                if dist > max_len[i]:
                    if dist > 1e-12:
                        scale = max_len[i] / dist
                        new_x = anchor_x + dx * scale
                        new_y = anchor_y + dy * scale
                    else:
                        new_x, new_y = anchor_x, anchor_y

                prev_x[i], prev_y[i] = pos_x[i], pos_y[i]
                pos_x[i], pos_y[i] = new_x, new_y

        return [Vec2(pos_x[i], pos_y[i]) for i in range(count)]
