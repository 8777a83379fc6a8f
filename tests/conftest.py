"""
Shared test fixtures.
"""

import io

import pytest
from rich.console import Console

from kee.aws_config import AwsConfigStore
from kee.registry import ProfileInfo, RegistryStore
from kee.session import SessionController

SESSION_CONFIG = """\
[profile dev]
sso_session = dev
sso_account_id = 123456789012
sso_role_name = AdministratorAccess
region = eu-west-1
output = json

[sso-session dev]
sso_start_url = https://dev.awsapps.com/start
sso_region = us-east-1
sso_registration_scopes = sso:account:access
"""

LEGACY_CONFIG = """\
[profile legacy]
sso_start_url = https://legacy.awsapps.com/start
sso_region = us-west-2
sso_account_id = 210987654321
sso_role_name = ReadOnly
"""


class FakeRunner:
    """Records commands instead of running them."""

    def __init__(self):
        self.calls = []
        self.exit_codes = {}
        self.hooks = {}

    def set_exit_code(self, subcommand, code):
        self.exit_codes[subcommand] = code

    def on(self, subcommand, hook):
        self.hooks[subcommand] = hook

    def _key(self, cmd, args):
        if cmd != "aws":
            return "shell"
        return " ".join(args[:2])

    def _run(self, cmd, args, env, mode):
        key = self._key(cmd, args)
        self.calls.append({"cmd": cmd, "args": list(args), "env": env, "mode": mode, "key": key})
        if key in self.hooks:
            self.hooks[key](cmd, args, env)
        return self.exit_codes.get(key, 0)

    def run_interactive(self, cmd, args, env=None):
        return self._run(cmd, args, env, "interactive")

    def run_captured(self, cmd, args, env=None):
        return self._run(cmd, args, env, "captured"), ""

    def keys(self):
        return [call["key"] for call in self.calls]


class ScriptedConfirm:
    """Answers confirmation prompts from a fixed list."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.questions = []

    def __call__(self, message):
        self.questions.append(message)
        return self.answers.pop(0) if self.answers else False


def make_profile(name="dev", session_name="dev", **overrides):
    values = dict(
        profile_name=name,
        sso_start_url="https://dev.awsapps.com/start",
        sso_region="us-east-1",
        sso_account_id="123456789012",
        sso_role_name="AdministratorAccess",
        session_name=session_name,
        region="eu-west-1",
    )
    values.update(overrides)
    return ProfileInfo(**values)


@pytest.fixture
def aws_config_path(tmp_path):
    return tmp_path / ".aws" / "config"


@pytest.fixture
def aws_config(aws_config_path):
    return AwsConfigStore(aws_config_path)


@pytest.fixture
def registry_path(tmp_path):
    path = tmp_path / ".aws" / "kee.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def registry_store(registry_path):
    return RegistryStore(registry_path)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def make_controller(aws_config, registry_store, runner, console):
    """Build a controller; pass confirm answers and environment as needed."""

    def factory(*answers, environ=None, windows=False):
        confirm = ScriptedConfirm(*answers)
        controller = SessionController(
            aws_config=aws_config,
            registry_store=registry_store,
            runner=runner,
            console=console,
            confirm=confirm,
            environ={} if environ is None else environ,
            windows=windows,
        )
        controller.confirm_script = confirm
        return controller

    return factory


def output_of(console):
    return console.file.getvalue()
