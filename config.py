import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional


ENV_PREFIX = "SCORE_ESTIMATOR_"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EstimatorConfig:
    # Playouts per estimate for the local playout estimator
    trials: int = 100
    # Confidence in [0, 1] required before a point counts as owned
    tolerance: float = 0.25
    prefer_remote: bool = False
    remote_url: Optional[str] = None
    remote_token: str = ""
    remote_timeout: float = 30.0
    # Largest board edge the remote service accepts
    remote_max_size: int = 19
    # Komi the remote service always scores with
    reference_komi: float = 7.5
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EstimatorConfig":
        """Build a config from SCORE_ESTIMATOR_* variables, defaults elsewhere."""
        env = os.environ if environ is None else environ
        cfg = cls()
        updates = {}
        if ENV_PREFIX + "TRIALS" in env:
            updates["trials"] = int(env[ENV_PREFIX + "TRIALS"])
        if ENV_PREFIX + "TOLERANCE" in env:
            updates["tolerance"] = float(env[ENV_PREFIX + "TOLERANCE"])
        if ENV_PREFIX + "PREFER_REMOTE" in env:
            updates["prefer_remote"] = _env_bool(env[ENV_PREFIX + "PREFER_REMOTE"])
        if env.get(ENV_PREFIX + "REMOTE_URL"):
            updates["remote_url"] = env[ENV_PREFIX + "REMOTE_URL"]
        if ENV_PREFIX + "REMOTE_TOKEN" in env:
            updates["remote_token"] = env[ENV_PREFIX + "REMOTE_TOKEN"]
        if ENV_PREFIX + "REMOTE_TIMEOUT" in env:
            updates["remote_timeout"] = float(env[ENV_PREFIX + "REMOTE_TIMEOUT"])
        if ENV_PREFIX + "REMOTE_MAX_SIZE" in env:
            updates["remote_max_size"] = int(env[ENV_PREFIX + "REMOTE_MAX_SIZE"])
        if ENV_PREFIX + "SEED" in env:
            updates["seed"] = int(env[ENV_PREFIX + "SEED"])
        if not (0.0 <= float(updates.get("tolerance", cfg.tolerance)) <= 1.0):
            raise ValueError("tolerance must be within [0, 1]")
        return replace(cfg, **updates)
