"""Local registry mapping kee nicknames to AWS SSO profiles."""

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileInfo:
    """SSO settings of one AWS CLI profile, as read from the AWS config file."""

    profile_name: str
    sso_start_url: str
    sso_region: str
    sso_account_id: str
    sso_role_name: str
    session_name: str = ""
    region: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProfileInfo":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        return cls(**values)


@dataclass
class Registry:
    """Nickname -> ProfileInfo mapping plus the nickname of the live session."""

    profiles: dict[str, ProfileInfo] = field(default_factory=dict)
    current_profile: Optional[str] = None

    def add(self, nickname: str, info: ProfileInfo) -> None:
        self.profiles[nickname] = info

    def remove(self, nickname: str) -> Optional[ProfileInfo]:
        removed = self.profiles.pop(nickname, None)
        if self.current_profile == nickname:
            self.current_profile = None
        return removed

    def get(self, nickname: str) -> Optional[ProfileInfo]:
        return self.profiles.get(nickname)

    def names(self) -> list[str]:
        return list(self.profiles)

    def set_current(self, nickname: Optional[str]) -> None:
        if nickname is not None and nickname not in self.profiles:
            raise KeyError(nickname)
        self.current_profile = nickname

    def is_empty(self) -> bool:
        return not self.profiles

    def to_dict(self) -> dict:
        return {
            "profiles": {name: info.to_dict() for name, info in self.profiles.items()},
            "current_profile": self.current_profile,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Registry":
        """
        Build a registry from its JSON form.

        Files written by older releases used ``accounts``/``current_account``
        and are accepted as well.
        """
        raw_profiles = data.get("profiles", data.get("accounts")) or {}
        profiles = {name: ProfileInfo.from_dict(info) for name, info in raw_profiles.items()}

        current = data.get("current_profile", data.get("current_account"))
        if current not in profiles:
            current = None

        return cls(profiles=profiles, current_profile=current)

    def list(self) -> list[tuple[str, ProfileInfo]]:
        return list(self.profiles.items())


class RegistryStore:
    """Loads and saves the registry JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Registry:
        """
        Read the registry from disk.

        A missing or unreadable file yields an empty registry.
        """
        if not self.path.exists():
            return Registry()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return Registry.from_dict(data)
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            logger.debug("Ignoring unreadable registry %s: %s", self.path, e)
            return Registry()

    def save(self, registry: Registry) -> None:
        """Replace the registry file with the given contents."""
        content = json.dumps(registry.to_dict(), indent=2)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".kee-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Saved registry with %d profile(s) to %s", len(registry.profiles), self.path)
