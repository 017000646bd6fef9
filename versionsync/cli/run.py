"""cli commands that resolve, update and check in the build version"""

import sys

import click

from versionsync.cli.utils.logging import logger
from versionsync.config import ConfigAccessor
from versionsync.model.config import (
    EnvironmentSettings,
    ProviderKind,
    RawFlags,
    TransactionConfig,
    resolve_config,
    resolve_environment,
)
from versionsync.sync import VersionSynchronizer, find_current_version
from versionsync.vcs import get_provider
from versionsync.versioning import (
    ConfigurationError,
    TransactionError,
    VersionNotFoundError,
)


def source_options(func):
    """Options shared by the commands that scan the source tree."""
    options = [
        click.option(
            "--source-dir",
            envvar="BUILD_SOURCESDIRECTORY",
            help="Root of the sources to scan. Env: BUILD_SOURCESDIRECTORY",
        ),
        click.option(
            "--use-custom-filter",
            envvar="VERSIONSYNC_USE_CUSTOM_FILTER",
            is_flag=True,
            default=False,
            help="Only consider files matching --custom-filter.",
        ),
        click.option(
            "--custom-filter",
            envvar="VERSIONSYNC_CUSTOM_FILTER",
            default=None,
            help="Pattern a version file must contain to be considered.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command(name="run")
@source_options
@click.option(
    "--increment-build/--no-increment-build",
    envvar="VERSIONSYNC_INCREMENT_BUILD",
    default=True,
    show_default=True,
    help="Increment the build number.",
)
@click.option(
    "--increment-revision/--no-increment-revision",
    envvar="VERSIONSYNC_INCREMENT_REVISION",
    default=True,
    show_default=True,
    help="Increment the revision, or reset it to 0 when the build is incremented.",
)
@click.option(
    "--skip-checkin/--checkin",
    envvar="VERSIONSYNC_SKIP_CHECKIN",
    default=False,
    show_default=True,
    help="Update files locally without checking them in.",
)
@click.option(
    "--do-not-increment",
    envvar="VERSIONSYNC_DO_NOT_INCREMENT",
    is_flag=True,
    default=False,
    help="Keep the current version and skip the check-in. Overrides all other flags.",
)
@click.option("--dry-run", is_flag=True, default=False, help="Report without writing.")
@click.option(
    "--temp-dir",
    envvar="AGENT_TEMPDIRECTORY",
    help="Scratch directory. Env: AGENT_TEMPDIRECTORY",
)
@click.option(
    "--collection-url",
    envvar="SYSTEM_TEAMFOUNDATIONCOLLECTIONURI",
    help="Project collection URL. Env: SYSTEM_TEAMFOUNDATIONCOLLECTIONURI",
)
@click.option(
    "--workspace",
    envvar="BUILD_REPOSITORY_TFVC_WORKSPACE",
    help="Workspace of the build. Env: BUILD_REPOSITORY_TFVC_WORKSPACE",
)
@click.option(
    "--branch",
    envvar="BUILD_SOURCEBRANCH",
    help="Branch or full ref to commit to (git). Env: BUILD_SOURCEBRANCH",
)
@click.option(
    "--build-number",
    envvar="BUILD_BUILDNUMBER",
    default="",
    help="Identifier of the running build. Env: BUILD_BUILDNUMBER",
)
@click.option("--agent-name", envvar="AGENT_NAME", default="", help="Env: AGENT_NAME")
@click.option(
    "--access-token",
    envvar="SYSTEM_ACCESSTOKEN",
    default=None,
    help="Token for the version control server. Env: SYSTEM_ACCESSTOKEN",
)
@click.option(
    "--provider",
    envvar="VERSIONSYNC_PROVIDER",
    type=click.Choice([p.value for p in ProviderKind]),
    default=ProviderKind.tfvc.value,
    show_default=True,
    help="Version control backend.",
)
@click.option(
    "--variable-name",
    envvar="VERSIONSYNC_VARIABLE_NAME",
    default=None,
    help="Output variable receiving the new version. Default: BuildVersion",
)
@click.option(
    "--timeout",
    envvar="VERSIONSYNC_TIMEOUT",
    default=None,
    help="A `human friendly` timeout for each version control command. Example: 90s, 10m",
)
@click.pass_context
def run(
    ctx,
    source_dir,
    use_custom_filter,
    custom_filter,
    increment_build,
    increment_revision,
    skip_checkin,
    do_not_increment,
    dry_run,
    temp_dir,
    collection_url,
    workspace,
    branch,
    build_number,
    agent_name,
    access_token,
    provider,
    variable_name,
    timeout,
):
    """Increment the version, update all version files and check them in."""
    ctx.ensure_object(dict)
    user_config = ConfigAccessor()

    try:
        config = resolve_config(
            RawFlags(
                increment_build=increment_build,
                increment_revision=increment_revision,
                skip_checkin=skip_checkin,
                do_not_increment=do_not_increment,
                use_custom_filter=use_custom_filter,
                custom_filter=custom_filter,
                dry_run=dry_run,
            )
        )
        settings = resolve_environment(
            source_dir,
            temp_dir=temp_dir,
            collection_url=collection_url,
            workspace=workspace,
            branch=branch,
            build_number=build_number,
            agent_name=agent_name,
            access_token=access_token,
            provider=ProviderKind(provider),
            variable_name=variable_name or user_config.get("publish", "variable"),
            tf_executable=user_config.get("tf", "executable"),
            command_timeout=timeout or user_config.get("tf", "timeout"),
            checkin_enabled=config.checkin_enabled,
        )
        vcs = get_provider(settings) if config.checkin_enabled else None
    except ConfigurationError as e:
        log_error_and_quit(logger, f"Error: {e}")
        return

    describe_run(config, settings)

    try:
        result = VersionSynchronizer(config, settings, vcs).run()
    except VersionNotFoundError as e:
        logger.info(f"{e}. Nothing to update.")
        sys.exit(0)
    except TransactionError as e:
        log_error_and_quit(logger, f"Error: check-in failed: {e}")
        return
    except OSError as e:
        log_error_and_quit(logger, f"Error: could not update version files: {e}")
        return

    logger.info(
        f"Version {result.new_version}: {len(result.rewritten)} file(s) updated, "
        f"{len(result.unchanged)} unchanged, {len(result.skipped)} not checked in."
    )
    if result.changeset:
        logger.info(f"Checked in as {result.changeset}.")


@click.command(name="show")
@source_options
def show(source_dir, use_custom_filter, custom_filter):
    """Print the current version and the file it was read from."""
    try:
        config = resolve_config(
            RawFlags(use_custom_filter=use_custom_filter, custom_filter=custom_filter)
        )
        settings = resolve_environment(source_dir, checkin_enabled=False)
    except ConfigurationError as e:
        log_error_and_quit(logger, f"Error: {e}")
        return

    try:
        path, version = find_current_version(settings.source_dir, config)
    except VersionNotFoundError as e:
        logger.info(str(e))
        sys.exit(0)
    except OSError as e:
        log_error_and_quit(logger, f"Error: could not read version files: {e}")
        return

    click.echo(f"{version}\t{path}")


def describe_run(config: TransactionConfig, settings: EnvironmentSettings):
    logger.debug(f"Source directory: {settings.source_dir}")
    logger.debug(f"Temp directory: {settings.temp_dir}")
    logger.debug(
        f"Increment build: {config.increment_build}, "
        f"increment revision: {config.increment_revision}, "
        f"check-in: {config.checkin_enabled}"
    )
    if config.filter_active:
        logger.info(f"Custom filter: {config.custom_filter}")
    if config.dry_run:
        logger.info("Dry run: no files are written.")


def log_error_and_quit(logger, error):
    logger.error(error)
    sys.exit(1)
