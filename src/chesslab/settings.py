"""User-configurable settings and engine binary discovery."""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, replace

from chesslab.engine.strength import SKILL_MAX, SKILL_MIN

_ENGINE_ENV_VARS = ("CHESSLAB_ENGINE", "STOCKFISH_PATH")
_ENGINE_NAMES = ("stockfish", "stockfish.exe")


class EngineUnavailableError(RuntimeError):
    """Raised when no engine executable can be located."""


@dataclass
class EngineSettings:
    """All user-configurable engine settings."""

    engine_path: str | None = None

    # Live play
    skill: int = 1200  # SKILL_MIN..SKILL_MAX
    error_bias: float = 0.0  # -1 error-prone .. +1 precise

    # Review
    review_depth: int = 14
    review_time_ms: int = 1000

    def __post_init__(self) -> None:
        self.skill = max(SKILL_MIN, min(SKILL_MAX, int(self.skill)))
        self.error_bias = max(-1.0, min(1.0, float(self.error_bias)))
        self.review_depth = max(1, int(self.review_depth))
        self.review_time_ms = max(50, int(self.review_time_ms))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineSettings:
        """Defaults overridden by ``CHESSLAB_*`` environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()
        overrides: dict[str, object] = {}
        if "CHESSLAB_SKILL" in env:
            overrides["skill"] = int(env["CHESSLAB_SKILL"])
        if "CHESSLAB_ERROR_BIAS" in env:
            overrides["error_bias"] = float(env["CHESSLAB_ERROR_BIAS"])
        if "CHESSLAB_REVIEW_DEPTH" in env:
            overrides["review_depth"] = int(env["CHESSLAB_REVIEW_DEPTH"])
        if "CHESSLAB_REVIEW_TIME_MS" in env:
            overrides["review_time_ms"] = int(env["CHESSLAB_REVIEW_TIME_MS"])
        overrides["engine_path"] = find_engine_binary(env)
        return replace(settings, **overrides)

    def require_engine_path(self) -> str:
        if not self.engine_path:
            msg = (
                "No UCI engine found. Install Stockfish or set CHESSLAB_ENGINE "
                "to the engine executable."
            )
            raise EngineUnavailableError(msg)
        return self.engine_path


def find_engine_binary(environ: Mapping[str, str] | None = None) -> str | None:
    """Try to find a usable engine executable path."""
    env = os.environ if environ is None else environ
    for var in _ENGINE_ENV_VARS:
        path = env.get(var)
        if path and os.path.isfile(path):
            return path

    for name in _ENGINE_NAMES:
        found = shutil.which(name)
        if found:
            return found
    return None
