"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    RESOLUTION_ERROR = 1
    CONNECTION_ERROR = 2
    INVALID_ARGUMENTS = 3
    CANCELLED = 130


class WriterType(Enum):
    """Output renderers supported by the program.

    Args:
        Enum (string): Writer names accepted on the command line.
    """

    TREE = "tree"
    GRAPH = "graph"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_FEED_URL = "https://api.nuget.org/v3/index.json"
    DEFAULT_TARGET_FRAMEWORK = "any"
    DEFAULT_WRITER_TYPE = WriterType.TREE.value
    DEFAULT_DEPENDENCY_EXCLUSION_FILTERS = ""
    DEFAULT_EXPANSION_EXCLUSION_FILTERS = "^System|^Microsoft"
    DEFAULT_FLOAT_BEHAVIOR = "major"
    FILTER_SEPARATOR = "|"
    PATH_SEPARATOR = " => "
    SUPPORTED_WRITERS = [WriterType.TREE.value, WriterType.GRAPH.value]
    SUPPORTED_FLOAT_BEHAVIORS = ["major", "minor", "patch"]

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "DEPTREE_LOG_LEVEL"
    ENV_FEED_URL = "DEPTREE_FEED_URL"
    ENV_TARGET_FRAMEWORK = "DEPTREE_TARGET_FRAMEWORK"
    ENV_USERNAME = "DEPTREE_USERNAME"
    ENV_PASSWORD = "DEPTREE_PASSWORD"

    # Feed client tunables
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    USER_AGENT = "DepTree/1.0"

    # NuGet v3 service index resource types (matched by prefix)
    RESOURCE_PACKAGE_BASE_ADDRESS = "PackageBaseAddress/3.0.0"
    # SemVer 2.0.0 registration hive first; the plain type is the SemVer1 hive
    RESOURCE_REGISTRATIONS_BASE_URL = ("RegistrationsBaseUrl/3.6.0", "RegistrationsBaseUrl")

    GRAPH_FOOTER = (
        "# The graph is represented in DOT language and can be visualized with any "
        "graphviz based visualizer like the online tool http://viz-js.com/."
    )
