"""Read and rewrite the AWS CLI config file (~/.aws/config)."""

import configparser
import logging
from pathlib import Path
from typing import Optional

from kee.errors import AwsConfigError
from kee.registry import ProfileInfo

logger = logging.getLogger(__name__)

# AWS config files have no DEFAULT section; keep every real section literal
_NO_DEFAULT_SECTION = "kee:no-default"


def profile_section(name: str) -> str:
    return f"profile {name}"


def sso_session_section(name: str) -> str:
    return f"sso-session {name}"


def new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        interpolation=None,
        allow_no_value=True,
        default_section=_NO_DEFAULT_SECTION,
    )
    # Keys are case sensitive for the AWS CLI
    parser.optionxform = str
    return parser


def dumps(config: configparser.ConfigParser) -> str:
    """
    Serialize a parsed config the way kee writes it back.

    Keys without a value are dropped. Multi-line values keep their
    continuation lines indented so they parse back the same.
    """
    lines = []
    for section in config.sections():
        lines.append(f"[{section}]")
        for key, value in config.items(section, raw=True):
            if value is None:
                continue
            value = value.replace("\n", "\n    ")
            lines.append(f"{key} = {value}")
        lines.append("")
    return "\n".join(lines) + ("\n" if lines else "")


class AwsConfigStore:
    """INI store over the AWS CLI config file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> configparser.ConfigParser:
        """
        Parse the config file.

        Returns an empty config when the file does not exist.

        Raises:
            AwsConfigError: the file is not valid UTF-8 INI
        """
        config = new_parser()
        if not self.path.exists():
            return config

        try:
            content = self.path.read_text(encoding="utf-8")
            config.read_string(content, source=str(self.path))
        except (configparser.Error, UnicodeDecodeError) as e:
            raise AwsConfigError(self.path, e) from e
        return config

    def save(self, config: configparser.ConfigParser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(dumps(config), encoding="utf-8")
        logger.debug("Rewrote %s (%d sections)", self.path, len(config.sections()))

    def reformat(self) -> None:
        """Normalize the file in place after the AWS CLI has edited it."""
        if not self.path.exists():
            return
        self.save(self.load())

    def remove_section(self, name: str) -> bool:
        """
        Drop a whole section by exact name.

        Returns:
            True if the section existed
        """
        if not self.path.exists():
            return False

        config = self.load()
        if not config.remove_section(name):
            return False
        self.save(config)
        return True

    def remove_profile(self, profile_name: str) -> bool:
        return self.remove_section(profile_section(profile_name))

    def remove_sso_session(self, session_name: str) -> bool:
        if not session_name:
            return False
        return self.remove_section(sso_session_section(session_name))

    def read_profile(self, profile_name: str) -> Optional[ProfileInfo]:
        """
        Read the SSO settings of ``[profile <profile_name>]``.

        Profiles referencing an ``sso_session`` get their start URL and SSO
        region from the matching ``[sso-session ...]`` section; legacy
        profiles carry them directly.

        Returns:
            ProfileInfo, or None when the profile is missing or lacks an
            account id or role name
        """
        config = self.load()
        section = profile_section(profile_name)
        if not config.has_section(section):
            return None

        profile = config[section]
        account_id = profile.get("sso_account_id")
        role_name = profile.get("sso_role_name")
        if not account_id or not role_name:
            logger.debug("Profile %s has no sso_account_id/sso_role_name", profile_name)
            return None

        session_name = profile.get("sso_session") or ""
        if session_name:
            session_key = sso_session_section(session_name)
            source = config[session_key] if config.has_section(session_key) else {}
        else:
            source = profile

        return ProfileInfo(
            profile_name=profile_name,
            sso_start_url=source.get("sso_start_url") or "",
            sso_region=source.get("sso_region") or "",
            sso_account_id=account_id,
            sso_role_name=role_name,
            session_name=session_name,
            region=profile.get("region") or None,
        )
