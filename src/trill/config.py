"""
Runtime configuration for trill.
Resolves the RPC endpoint and the stepping/display settings shared by the
CLI and the interactive debugger.
"""

import os
from dataclasses import dataclass
from typing import Any, Optional

DEFAULT_RPC_URL = "http://localhost:8545"
RPC_ENV_VAR = "RPC_HTTP"


@dataclass
class TrillConfig:
    """Settings for one trill run."""

    rpc_url: Optional[str] = None

    # Instructions processed per forward tick
    iteration: int = 1

    # Ticks per second for the play loop
    fps: float = 4.0

    # Memory slots drawn per grid row
    grid_width: int = 32

    # Visible lines of operation history
    history_rows: int = 10

    color: bool = True

    def __post_init__(self):
        if self.rpc_url is None:
            self.rpc_url = os.environ.get(RPC_ENV_VAR) or DEFAULT_RPC_URL
        if self.iteration < 1:
            raise ValueError(f"iteration must be at least 1, got {self.iteration}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.grid_width < 1:
            raise ValueError(f"grid width must be at least 1, got {self.grid_width}")
        if self.history_rows < 1:
            raise ValueError(f"history rows must be at least 1, got {self.history_rows}")

    @property
    def tick_seconds(self) -> float:
        return 1.0 / self.fps

    @classmethod
    def from_args(cls, args: Any) -> "TrillConfig":
        """Build a config from an argparse namespace; missing options keep their defaults."""
        kwargs = {}
        for name in ("rpc_url", "iteration", "fps", "grid_width", "history_rows"):
            value = getattr(args, name, None)
            if value is not None:
                kwargs[name] = value
        if getattr(args, "no_color", False):
            kwargs["color"] = False
        return cls(**kwargs)
