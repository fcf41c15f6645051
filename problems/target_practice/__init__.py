from problems.target_practice.problem import (
    MISS_DISTANCE,
    AimInputs,
    Arena,
    TargetPractice,
)
