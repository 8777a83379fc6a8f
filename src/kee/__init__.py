"""kee: named AWS SSO profiles and profile-scoped sub-shells."""

__version__ = "0.1.0"
