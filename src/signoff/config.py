"""Runtime settings resolved from the environment."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .errors import InvalidArgument
from .store import APPROVALS_STORAGE_KEY

HOME_ENV = "SIGNOFF_HOME"
PROFILE_ENV = "SIGNOFF_PROFILE"
DEFAULT_PROFILE = "default"
STORAGE_FILENAME = "storage.sqlite"

_PROFILE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _default_home() -> Path:
    return Path.home() / ".signoff"


def validate_profile(profile: str) -> str:
    if not isinstance(profile, str) or not _PROFILE_RE.match(profile):
        raise InvalidArgument(
            "profile must start with a letter or digit and contain only letters, "
            "digits, '.', '_' or '-'"
        )
    return profile


@dataclass(frozen=True)
class Settings:
    """Where approvals live. One storage file per profile."""

    home: Path = field(default_factory=_default_home)
    profile: str = DEFAULT_PROFILE
    storage_key: str = APPROVALS_STORAGE_KEY

    def __post_init__(self) -> None:
        validate_profile(self.profile)
        if not self.storage_key or not self.storage_key.strip():
            raise InvalidArgument("storage_key must be a non-empty string")
        object.__setattr__(self, "home", Path(self.home).expanduser())

    @property
    def profile_dir(self) -> Path:
        return self.home / "profiles" / self.profile

    @property
    def storage_path(self) -> Path:
        return self.profile_dir / STORAGE_FILENAME

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        home: Path | str | None = None,
        profile: str | None = None,
    ) -> "Settings":
        """Build settings from SIGNOFF_HOME / SIGNOFF_PROFILE; explicit arguments win."""
        env = os.environ if environ is None else environ
        if home is None:
            env_home = env.get(HOME_ENV, "").strip()
            home = Path(env_home) if env_home else _default_home()
        if profile is None:
            profile = env.get(PROFILE_ENV, "").strip() or DEFAULT_PROFILE
        return cls(home=Path(home), profile=profile)
