from .config import (
    EnvironmentSettings,
    ProviderKind,
    RawFlags,
    TransactionConfig,
    resolve_config,
    resolve_environment,
)

__all__ = [
    "EnvironmentSettings",
    "ProviderKind",
    "RawFlags",
    "TransactionConfig",
    "resolve_config",
    "resolve_environment",
]
