"""DepTree - Print the resolved dependency hierarchy of a NuGet package.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import signal
import sys

from args import parse_args
from cli_config import HierarchyConfig, load_config_file, setup_logging
from common.logging_utils import configure_logging, extra_context, is_debug_enabled, safe_url
from constants import ExitCodes
from exceptions import ConfigError, DepTreeError, FeedError
from hierarchy.builder import HierarchyBuilder
from hierarchy.models import HierarchyNode
from registry.nuget import NuGetFeedClient
from versioning.parser import parse_package_token, parse_range
from writers import create_writer

logger = logging.getLogger(__name__)


async def build_tree(config, package_id, constraint) -> HierarchyNode:
    """Resolve the root package and build its hierarchy on the configured feed."""
    async with NuGetFeedClient(
        config.feed_url,
        username=config.username,
        password=config.password,
        max_concurrency=config.max_concurrency,
    ) as feed:
        # Fail fast with a connection error before any package is resolved
        await feed.get_service_index()
        builder = HierarchyBuilder(
            feed,
            float_behavior=config.floating(),
            include_prerelease=config.include_prerelease,
        )
        root = await builder.resolve_latest(package_id, constraint)
        logger.info("Resolving dependencies of %s for %s.", root, config.framework())
        return await builder.build_hierarchy(
            root,
            config.framework(),
            config.dependency_filters(),
            config.expansion_filters(),
        )


def run_until_cancelled(coro):
    """Run ``coro`` on a fresh event loop; SIGINT and SIGTERM cancel it.

    Raises:
        asyncio.CancelledError: If a signal (or Ctrl+C) cancelled the run.
    """
    loop = asyncio.new_event_loop()
    task = loop.create_task(coro)
    installed = []

    def _cancel():
        logger.info("Operation cancellation requested.")
        task.cancel()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _cancel)
            installed.append(sig)
        except (NotImplementedError, RuntimeError, ValueError):
            # Not supported on this platform or outside the main thread
            pass
    try:
        return loop.run_until_complete(task)
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work (Windows)
        _cancel()
        loop.run_until_complete(asyncio.gather(task, return_exceptions=True))
        raise asyncio.CancelledError() from None
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        loop.close()


def _report_error(exc: Exception) -> None:
    sys.stderr.write(f"{type(exc).__name__}: {exc}\n")
    path = getattr(exc, "path", None)
    if path:
        sys.stderr.write(f"Path: {exc.path_text}\n")


def _write_output(config_output, writer_type, tree) -> None:
    if config_output:
        with open(config_output, "w", encoding="utf-8") as stream:
            create_writer(writer_type, stream).write(tree)
        logger.info("Hierarchy written to %s.", config_output)
    else:
        create_writer(writer_type, sys.stdout).write(tree)


def run(argv=None) -> int:
    """Run the CLI and return its exit code."""
    args = parse_args(argv)
    # Early console logging so configuration problems are reported
    configure_logging(args.LOG_LEVEL)

    try:
        config = HierarchyConfig.from_args(args, load_config_file(args.CONFIG))
        setup_logging(config)
        package_id, constraint = parse_package_token(args.package_id)
        if args.VERSION_RANGE:
            constraint = parse_range(args.VERSION_RANGE)
        # Compile filters up front so a bad regex is an argument error
        config.dependency_filters()
        config.expansion_filters()
    except (ConfigError, ValueError) as exc:
        _report_error(exc)
        return ExitCodes.INVALID_ARGUMENTS.value

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(
                event="function_entry",
                component="cli",
                action="main",
                package_id=package_id,
                feed=safe_url(config.feed_url),
                framework=str(config.framework()),
                writer=config.writer_type,
            ),
        )

    try:
        tree = run_until_cancelled(build_tree(config, package_id, constraint))
    except asyncio.CancelledError:
        logger.warning("Operation cancelled.")
        return ExitCodes.CANCELLED.value
    except FeedError as exc:
        _report_error(exc)
        return ExitCodes.CONNECTION_ERROR.value
    except DepTreeError as exc:
        _report_error(exc)
        return ExitCodes.RESOLUTION_ERROR.value
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.debug("Unexpected failure", exc_info=True)
        _report_error(exc)
        return ExitCodes.RESOLUTION_ERROR.value

    try:
        _write_output(args.OUTPUT, config.writer_type, tree)
    except OSError as exc:
        _report_error(exc)
        return ExitCodes.INVALID_ARGUMENTS.value
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
