"""Argument parsing functionality for DepTree."""

import argparse
import sys

from constants import Constants, ExitCodes


class DepTreeArgumentParser(argparse.ArgumentParser):
    """Argument parser exiting with ``ExitCodes.INVALID_ARGUMENTS`` on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(ExitCodes.INVALID_ARGUMENTS.value, f"{self.prog}: error: {message}\n")


def build_parser():
    """Build the argument parser for the program."""
    parser = DepTreeArgumentParser(
        prog="deptree",
        description=(
            "DepTree - Print the resolved dependency hierarchy of a NuGet package"
        ),
        add_help=True,
    )

    parser.add_argument("package_id",
                        metavar="PACKAGE_ID",
                        help="The package identifier, optionally followed by ':<version range>'.",
                        type=str)

    parser.add_argument("-s", "--source-feed-url",
                        dest="FEED_URL",
                        help=f"The URL of the source feed. Default: \"{Constants.DEFAULT_FEED_URL}\".",
                        action="store", type=str)
    parser.add_argument("-t", "--target-framework",
                        dest="TARGET_FRAMEWORK",
                        help=f"The target framework. Default: \"{Constants.DEFAULT_TARGET_FRAMEWORK}\".",
                        action="store", type=str)
    parser.add_argument("-w", "--writer-type",
                        dest="WRITER_TYPE",
                        help=("The type of writer to use to print the dependencies. "
                              f"Default: \"{Constants.DEFAULT_WRITER_TYPE}\"."),
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_WRITERS)
    parser.add_argument("-r", "--version-range",
                        dest="VERSION_RANGE",
                        help="NuGet version range for the root package, e.g. '[1.0,2.0)'. Default: latest.",
                        action="store", type=str)

    parser.add_argument("-def", "--dependency-exclusion-filter",
                        dest="DEPENDENCY_EXCLUSION_FILTERS",
                        help=("Regex filter applied to the dependencies of each package. "
                              "Matching packages are neither listed nor expanded. Can be used multiple times. "
                              f"Default: \"{Constants.DEFAULT_DEPENDENCY_EXCLUSION_FILTERS}\"."),
                        action="append", type=str)
    parser.add_argument("-eef", "--expansion-exclusion-filter",
                        dest="EXPANSION_EXCLUSION_FILTERS",
                        help=("Regex filter applied to the parent of a dependency branch. "
                              "Matching packages are listed but their dependencies are not expanded. "
                              "Can be used multiple times. "
                              f"Default: \"{Constants.DEFAULT_EXPANSION_EXCLUSION_FILTERS}\"."),
                        action="append", type=str)

    parser.add_argument("--float",
                        dest="FLOAT_BEHAVIOR",
                        help=("Scope in which dependency versions float to the highest match. "
                              f"Default: \"{Constants.DEFAULT_FLOAT_BEHAVIOR}\"."),
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_FLOAT_BEHAVIORS)
    parser.add_argument("--prerelease",
                        dest="INCLUDE_PRERELEASE",
                        help="Consider prerelease versions when resolving.",
                        action="store_true",
                        default=None)
    parser.add_argument("--max-concurrency",
                        dest="MAX_CONCURRENCY",
                        help="Maximum number of concurrent feed requests. Default: unbounded.",
                        action="store", type=int)

    parser.add_argument("--username",
                        dest="USERNAME",
                        help="User name for feeds requiring basic authentication.",
                        action="store", type=str)
    parser.add_argument("--password",
                        dest="PASSWORD",
                        help="Password for feeds requiring basic authentication.",
                        action="store", type=str)

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file. Default: standard output.",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
