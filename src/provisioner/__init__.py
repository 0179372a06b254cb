"""DAO provisioning service: smart account, governance token and DAO in one run."""

__version__ = "1.0.0"
