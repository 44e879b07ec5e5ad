"""
Fit configuration.

All tolerances are fields of the configuration of a single run.
"""

from dataclasses import dataclass, fields
from typing import Optional


# Option names accepted by FitConfig.from_dict in addition to field names
_ALIASES = {
    'initialDamping': 'initial_damping',
    'dampingFactor': 'damping_factor',
    'maxIterations': 'max_iterations',
    'costTolerance': 'cost_tolerance',
    'stepTolerance': 'step_tolerance',
    'absoluteCostTolerance': 'absolute_cost_tolerance',
    'jacobianStepSize': 'jacobian_step_size',
    'jacobianScheme': 'jacobian_scheme',
    'maxRejectionsPerStep': 'max_rejections_per_step',
    'minDamping': 'min_damping',
    'maxDamping': 'max_damping',
    'rankTolerance': 'rank_tolerance',
    'divergenceThreshold': 'divergence_threshold',
}


@dataclass(frozen=True)
class FitConfig:
    """Levenberg-Marquardt settings."""
    initial_damping: float = 1e-3             # Starting λ
    damping_factor: float = 10.0              # λ multiplier on reject, divisor on accept
    max_iterations: int = 100                 # Jacobian evaluations before giving up
    cost_tolerance: float = 1e-8              # Relative cost decrease between accepted steps
    step_tolerance: float = 1e-8              # Step norm relative to parameter norm
    absolute_cost_tolerance: float = 1e-20    # Cost treated as an exact fit
    jacobian_step_size: Optional[float] = None  # Finite-difference step (default sqrt(eps))
    jacobian_scheme: str = "forward"          # 'forward' or 'central'
    max_rejections_per_step: int = 50         # Retries with the same Jacobian
    min_damping: float = 1e-15
    max_damping: float = 1e15
    rank_tolerance: Optional[float] = None    # Relative pivot tolerance (default eps * dim)
    divergence_threshold: float = 1e100       # Largest acceptable |parameter|

    def __post_init__(self):
        positive = (
            'initial_damping', 'cost_tolerance', 'step_tolerance',
            'min_damping', 'max_damping', 'divergence_threshold',
        )
        for name in positive:
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.absolute_cost_tolerance < 0:
            raise ValueError("absolute_cost_tolerance must be non-negative")
        if not self.damping_factor > 1:
            raise ValueError(f"damping_factor must be > 1, got {self.damping_factor}")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")
        if self.max_rejections_per_step < 1:
            raise ValueError("max_rejections_per_step must be at least 1")
        if self.min_damping > self.max_damping:
            raise ValueError("min_damping must not exceed max_damping")
        if self.jacobian_step_size is not None and not self.jacobian_step_size > 0:
            raise ValueError("jacobian_step_size must be positive")
        if self.rank_tolerance is not None and not self.rank_tolerance > 0:
            raise ValueError("rank_tolerance must be positive")
        if self.jacobian_scheme not in ('forward', 'central'):
            raise ValueError(
                f"Unknown jacobian_scheme: '{self.jacobian_scheme}'\n"
                f"Valid options: 'forward', 'central'"
            )

    @classmethod
    def from_dict(cls, options: dict) -> "FitConfig":
        """
        Build a configuration from a mapping of overrides.

        Keys may be field names or their camelCase forms
        (e.g. ``maxIterations``). Unknown keys raise ValueError.
        """
        valid = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in valid:
                raise ValueError(f"Unknown fit option: '{key}'")
            kwargs[name] = value
        return cls(**kwargs)
