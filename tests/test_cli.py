"""Tests for the deptree command line."""

import asyncio
from unittest.mock import patch

import pytest

import deptree
from args import parse_args
from cli_config import HierarchyConfig, load_config_file
from constants import Constants, ExitCodes
from exceptions import ConfigError, FeedError
from versioning.models import FloatBehavior

from stub_feed import StubFeed, depends_on, leaf


class CliFeed(StubFeed):
    """StubFeed usable where the CLI expects a NuGetFeedClient."""

    service_index_error = None

    def __init__(self, packages):
        super().__init__(packages)
        self.opened = False
        self.closed = False

    def __call__(self, feed_url, **kwargs):
        self.feed_url = feed_url
        self.client_kwargs = kwargs
        return self

    async def __aenter__(self):
        self.opened = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    async def get_service_index(self):
        if self.service_index_error is not None:
            raise self.service_index_error
        return {"resources": []}


@pytest.fixture
def feed():
    return CliFeed({
        "A": {"1.0.0": depends_on("B", "System.Runtime")},
        "B": {"1.0.0": leaf(), "1.1.0": leaf()},
        "System.Runtime": {"4.3.0": depends_on("Inner")},
        "Inner": {"1.0.0": leaf()},
    })


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        Constants.ENV_FEED_URL,
        Constants.ENV_TARGET_FRAMEWORK,
        Constants.ENV_USERNAME,
        Constants.ENV_PASSWORD,
        Constants.ENV_LOG_LEVEL,
    ):
        monkeypatch.delenv(name, raising=False)


class TestArgs:
    """Test argument parsing."""

    def test_defaults_are_unset(self):
        """Unset options stay None so lower-precedence sources apply."""
        args = parse_args(["Serilog"])

        assert args.package_id == "Serilog"
        assert args.FEED_URL is None
        assert args.DEPENDENCY_EXCLUSION_FILTERS is None
        assert args.EXPANSION_EXCLUSION_FILTERS is None
        assert args.INCLUDE_PRERELEASE is None

    def test_repeatable_filters(self):
        """Filter options accumulate."""
        args = parse_args(["A", "-def", "^B", "-def", "^C", "-eef", "^D"])

        assert args.DEPENDENCY_EXCLUSION_FILTERS == ["^B", "^C"]
        assert args.EXPANSION_EXCLUSION_FILTERS == ["^D"]

    def test_invalid_choice_exit_code(self):
        """Usage errors exit with the invalid-arguments code."""
        with pytest.raises(SystemExit) as excinfo:
            parse_args(["A", "-w", "html"])

        assert excinfo.value.code == ExitCodes.INVALID_ARGUMENTS.value


class TestHierarchyConfig:
    """Test configuration precedence."""

    def test_constants_are_the_fallback(self):
        """Without other sources the defaults apply."""
        config = HierarchyConfig.from_args(parse_args(["A"]))

        assert config.feed_url == Constants.DEFAULT_FEED_URL
        assert config.target_framework == "any"
        assert config.writer_type == "tree"
        assert config.floating() == FloatBehavior.MAJOR
        assert [str(f) for f in config.expansion_filters()] == ["^System", "^Microsoft"]
        assert config.dependency_filters() == ()

    def test_precedence(self, monkeypatch):
        """CLI beats config file, which beats the environment."""
        monkeypatch.setenv(Constants.ENV_FEED_URL, "https://env/index.json")
        monkeypatch.setenv(Constants.ENV_TARGET_FRAMEWORK, "net48")
        monkeypatch.setenv(Constants.ENV_USERNAME, "env-user")
        file_config = {"target_framework": "net461", "username": "file-user"}

        config = HierarchyConfig.from_args(parse_args(["A", "--username", "cli-user"]), file_config)

        assert config.feed_url == "https://env/index.json"
        assert config.target_framework == "net461"
        assert config.username == "cli-user"

    def test_file_filters_accept_string_or_list(self):
        """Filter lists may be written as one string in the file."""
        config = HierarchyConfig.from_args(
            parse_args(["A"]),
            {"expansion_exclusion_filters": "^Only", "dependency_exclusion_filters": ["^X", "^Y"]},
        )

        assert config.expansion_exclusion_filters == ["^Only"]
        assert config.dependency_exclusion_filters == ["^X", "^Y"]

    def test_invalid_values(self):
        """Bad merged values are configuration errors."""
        with pytest.raises(ConfigError):
            HierarchyConfig.from_args(parse_args(["A"]), {"writer_type": "html"})
        with pytest.raises(ConfigError):
            HierarchyConfig.from_args(parse_args(["A"]), {"max_concurrency": 0})

    def test_load_yaml_file(self, tmp_path):
        """Settings may sit under a 'deptree' section."""
        path = tmp_path / "deptree.yml"
        path.write_text("deptree:\n  feed_url: https://file/index.json\n  bogus: 1\n", encoding="utf-8")

        assert load_config_file(str(path)) == {"feed_url": "https://file/index.json"}

    def test_load_json_file(self, tmp_path):
        """JSON files load as well."""
        path = tmp_path / "deptree.json"
        path.write_text('{"float_behavior": "minor"}', encoding="utf-8")

        assert load_config_file(str(path)) == {"float_behavior": "minor"}

    def test_load_errors(self, tmp_path):
        """Missing and malformed files raise ConfigError."""
        bad = tmp_path / "bad.yml"
        bad.write_text("- just\n- a list\n", encoding="utf-8")

        assert load_config_file(None) == {}
        with pytest.raises(ConfigError):
            load_config_file(str(tmp_path / "missing.yml"))
        with pytest.raises(ConfigError):
            load_config_file(str(bad))


class TestRun:
    """Test the CLI end to end against an in-memory feed."""

    def test_tree_output(self, feed, capsys):
        """The default run prints the indented tree."""
        with patch("deptree.NuGetFeedClient", feed):
            code = deptree.run(["A", "-t", "net5.0"])

        assert code == ExitCodes.SUCCESS.value
        assert capsys.readouterr().out.splitlines() == [
            "A 1.0.0",
            "| B 1.1.0",
            "| System.Runtime 4.3.0",
        ]
        assert feed.opened and feed.closed

    def test_graph_output_to_file(self, feed, tmp_path):
        """Graph output can be written to a file."""
        out = tmp_path / "graph.dot"
        with patch("deptree.NuGetFeedClient", feed):
            code = deptree.run(["A", "-w", "graph", "-eef", "^Nothing", "-o", str(out)])

        assert code == ExitCodes.SUCCESS.value
        lines = out.read_text(encoding="utf-8").splitlines()
        assert lines[0] == 'digraph "A 1.0.0" {'
        assert '  "System.Runtime 4.3.0" -> "Inner 1.0.0"' in lines

    def test_version_range_option(self, feed, capsys):
        """-r constrains the root package."""
        with patch("deptree.NuGetFeedClient", feed):
            code = deptree.run(["B", "-r", "[1.0]"])

        assert code == ExitCodes.SUCCESS.value
        assert capsys.readouterr().out.splitlines() == ["B 1.0.0"]

    def test_client_options_forwarded(self, feed):
        """Feed URL and credentials reach the feed client."""
        with patch("deptree.NuGetFeedClient", feed):
            deptree.run(["B", "-s", "https://private/index.json", "--username", "u", "--password", "p"])

        assert feed.feed_url == "https://private/index.json"
        assert feed.client_kwargs["username"] == "u"
        assert feed.client_kwargs["password"] == "p"

    def test_resolution_error(self, feed, capsys):
        """Resolution failures print the error and its path."""
        feed.packages["a"] = ("A", {"1.0.0": depends_on(("B", "[5.0,)"))})
        with patch("deptree.NuGetFeedClient", feed):
            code = deptree.run(["A"])

        err = capsys.readouterr().err
        assert code == ExitCodes.RESOLUTION_ERROR.value
        assert "VersionNotFound: " in err
        assert "Path: A 1.0.0" in err

    def test_unknown_root(self, feed, capsys):
        """An unknown root package is a resolution error."""
        with patch("deptree.NuGetFeedClient", feed):
            code = deptree.run(["Ghost"])

        assert code == ExitCodes.RESOLUTION_ERROR.value
        assert "PackageNotFound" in capsys.readouterr().err

    def test_connection_error(self, feed, capsys):
        """An unreachable feed exits with the connection error code."""
        feed.service_index_error = FeedError("refused")
        with patch("deptree.NuGetFeedClient", feed):
            code = deptree.run(["A"])

        assert code == ExitCodes.CONNECTION_ERROR.value
        assert "FeedError: refused" in capsys.readouterr().err

    @pytest.mark.parametrize("argv", [["A", "-r", "[2.0,1.0]"], ["A", "-def", "(["], ["A:[oops"]])
    def test_invalid_arguments(self, feed, argv):
        """Bad ranges and filters exit with the invalid-arguments code."""
        with patch("deptree.NuGetFeedClient", feed):
            assert deptree.run(argv) == ExitCodes.INVALID_ARGUMENTS.value

    def test_cancellation(self, capsys):
        """A cancelled run exits with 130 and no resolution error."""
        async def cancelled(config, package_id, constraint):
            asyncio.current_task().cancel()
            await asyncio.sleep(0)

        with patch("deptree.build_tree", cancelled):
            code = deptree.run(["A"])

        assert code == ExitCodes.CANCELLED.value
        assert "Error" not in capsys.readouterr().err

    def test_main_exits_with_code(self, feed):
        """main passes the exit code to sys.exit."""
        with patch("deptree.NuGetFeedClient", feed):
            with pytest.raises(SystemExit) as excinfo:
                deptree.main(["B"])

        assert excinfo.value.code == 0
