"""Paths and environment settings used by kee."""

import os
from pathlib import Path
from typing import Optional

from botocore.session import Session

from kee.errors import KeeError

# Environment markers exported into the sub-shell
ACTIVE_SESSION_VAR = "KEE_ACTIVE_SESSION"
CURRENT_ACCOUNT_VAR = "KEE_CURRENT_ACCOUNT"
AWS_PROFILE_VAR = "AWS_PROFILE"
PROMPT_VAR = "PS1"

# Overrides the registry location (mostly useful for tests)
REGISTRY_FILE_VAR = "KEE_CONFIG_FILE"
REGISTRY_FILE_NAME = "kee.json"

DEFAULT_POSIX_SHELL = "/bin/bash"
DEFAULT_WINDOWS_SHELL = "cmd.exe"


def get_home_dir() -> Path:
    """Get the user's home directory, failing loudly if it is unknown."""
    try:
        return Path.home()
    except RuntimeError as e:
        raise KeeError(f"Could not find the home directory: {e}") from e


def get_aws_dir() -> Path:
    return get_home_dir() / ".aws"


def get_aws_config_path() -> Path:
    """
    Get the path to the AWS config file.

    Honors AWS_CONFIG_FILE exactly like the AWS CLI does.
    """
    # botocore falls back to ~/.aws/config itself
    return Path(os.path.expanduser(Session().get_config_variable("config_file")))


def get_registry_path() -> Path:
    """
    Get the path to kee's own JSON registry.

    The parent directory is created when missing.
    """
    override = os.environ.get(REGISTRY_FILE_VAR)
    path = Path(os.path.expanduser(override)) if override else get_aws_dir() / REGISTRY_FILE_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def format_prompt(nickname: str, current_prompt: Optional[str]) -> str:
    """Prefix the shell prompt with the active kee session."""
    if current_prompt:
        return f"(kee:{nickname}) {current_prompt}"
    return f"(kee:{nickname}) $ "
