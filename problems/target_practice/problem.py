"""Target practice: evolve a launch velocity that lands a projectile on a pad.

Screen coordinates: x grows to the right, y grows downwards, so an upward
launch has a negative ``y`` velocity. The flight is solved analytically with
constant gravity; a shot touching the ceiling or a side wall is a miss.
"""

from __future__ import annotations

import asyncio
import math
import random
from typing import NamedTuple

from loguru import logger
from pydantic import BaseModel, Field

from genevo import (
    AutoReproduction,
    EngineCallbacks,
    GeneticConfig,
    SortConfig,
    SortPolicy,
    WeightedMutation,
)

MISS_DISTANCE = 99999.0


class AimInputs(NamedTuple):
    x: float
    y: float


class Arena(BaseModel):
    """Geometry of the shooting range, in pixels and pixels/step."""

    launch_x: float = 40.0
    launch_y: float = 500.0
    gravity: float = Field(default=0.5, gt=0)
    projectile_radius: float = Field(default=10.0, gt=0)
    ceiling_y: float = 25.0
    floor_y: float = 575.0
    left_wall_x: float = 25.0
    right_wall_x: float = 775.0
    target_x: float = 600.0
    target_y: float = 570.0
    target_height: float = 20.0
    max_fitness: float = Field(default=1000.0, gt=0)
    max_mutation_strength: float = Field(default=25.0, gt=0)


class TargetPractice:
    def __init__(self, arena: Arena | None = None, rng: random.Random | None = None):
        self.arena = arena or Arena()
        self.rng = rng or random.Random()

    @property
    def max_distance(self) -> float:
        a = self.arena
        return a.max_fitness + a.projectile_radius + a.target_height / 2

    def landing_point(self, aim: AimInputs) -> tuple[float, float] | None:
        """Where the projectile first touches the floor, or None on a wall hit."""
        a = self.arena
        r = a.projectile_radius

        if aim.y < 0:
            peak_y = a.launch_y - aim.y**2 / (2 * a.gravity)
            if peak_y - r <= a.ceiling_y:
                return None

        contact_y = a.floor_y - r
        drop = contact_y - a.launch_y
        t = (-aim.y + math.sqrt(aim.y**2 + 2 * a.gravity * drop)) / a.gravity
        landing_x = a.launch_x + aim.x * t
        if landing_x - r <= a.left_wall_x or landing_x + r >= a.right_wall_x:
            return None
        return landing_x, contact_y

    def landing_distance(self, aim: AimInputs) -> float:
        point = self.landing_point(aim)
        if point is None:
            return MISS_DISTANCE
        return math.dist(point, (self.arena.target_x, self.arena.target_y))

    async def fitness(self, aim: AimInputs) -> float:
        distance = await asyncio.to_thread(self.landing_distance, aim)
        return self.max_distance - distance

    def generate(self) -> AimInputs:
        return AimInputs(2.0, -15.0)

    def mutate(self, aim: AimInputs, last_fitness: float) -> AimInputs:
        """Nudge one coordinate; the nudge shrinks as the shot gets closer."""
        a = self.arena
        if last_fitness >= self.max_distance - a.projectile_radius * 2:
            return aim

        miss = self.max_distance - last_fitness
        strength = 250 * miss**3 / self.max_distance**3
        strength = min(max(0.7, strength), a.max_mutation_strength)
        step = self.rng.random() * strength
        sign = 1 if self.rng.random() < 0.5 else -1

        if self.rng.random() < 0.5:
            return AimInputs(max(0.0, aim.x + sign * step), aim.y)
        return AimInputs(aim.x, min(0.0, aim.y + sign * step))

    def build_config(
        self,
        *,
        population_size: int,
        kill_worst_fraction: float | None,
        callbacks: EngineCallbacks | None = None,
    ) -> GeneticConfig:
        logger.debug(
            "[TargetPractice] max_distance={:.1f}, arena={}",
            self.max_distance,
            self.arena.model_dump(),
        )
        return GeneticConfig(
            population_size=population_size,
            sort=SortConfig(policy=SortPolicy.HIGH_FIRST),
            generate=self.generate,
            fitness=self.fitness,
            reproduction=AutoReproduction(
                mutations=[WeightedMutation(probability=1.0, mutate=self.mutate)]
            ),
            kill_worst_fraction=kill_worst_fraction,
            callbacks=callbacks or EngineCallbacks(),
        )
