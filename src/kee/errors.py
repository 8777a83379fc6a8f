"""Exceptions raised by kee."""


class KeeError(Exception):
    """Base error for failures that abort a kee command."""


class AwsConfigError(KeeError):
    """The AWS config file could not be parsed."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid AWS config file {path}: {reason}")
