"""
Version control layer.

The transaction logic only talks to the VersionControlProvider interface.
Two backends are shipped:

- TfvcProvider: Team Foundation Version Control through the ``tf`` client
- GitProvider: a git branch, through a temporary worktree (GitPython)
"""

from versionsync.model.config import EnvironmentSettings, ProviderKind
from versionsync.versioning.exceptions import ConfigurationError

from .provider import VersionControlProvider, WorkingFolder, WorkspaceMapping
from .transaction import SourceControlTransaction, TransactionState


def get_provider(settings: EnvironmentSettings) -> VersionControlProvider:
    """
    Build the provider selected in the settings.

    Raises:
        ConfigurationError: If the backend cannot be set up from the settings
    """
    if settings.provider == ProviderKind.git:
        from .git import GitProvider

        return GitProvider(
            settings.source_dir, branch=settings.branch, temp_dir=settings.temp_dir
        )

    from .tfvc import TfvcProvider

    token = settings.access_token.get_secret_value() if settings.access_token else None
    if not settings.collection_url:
        raise ConfigurationError("collection url")
    if not settings.workspace:
        raise ConfigurationError("workspace")
    return TfvcProvider(
        settings.collection_url,
        settings.workspace,
        tf_executable=settings.tf_executable,
        access_token=token,
        timeout=settings.command_timeout,
    )


__all__ = [
    "VersionControlProvider",
    "WorkingFolder",
    "WorkspaceMapping",
    "SourceControlTransaction",
    "TransactionState",
    "get_provider",
]
