"""Tests for NuGet versions, ranges and version selection."""

import asyncio

import pytest

from exceptions import PackageNotFound, VersionNotFound
from hierarchy.cache import ResolutionCache
from versioning.models import FloatBehavior, VersionConstraint
from versioning.parser import (
    parse_package_token,
    parse_range,
    parse_version,
    tokenize_rightmost_colon,
    try_parse_version,
)
from versioning.selector import VersionSelector

from stub_feed import StubFeed, leaf


def versions(*texts):
    return [parse_version(t) for t in texts]


class TestParseVersion:
    """Test NuGet version parsing and ordering."""

    def test_short_forms_are_normalized(self):
        """Missing parts default to zero."""
        assert parse_version("1") == parse_version("1.0.0")
        assert parse_version("1.0") == parse_version("1.0.0.0")
        assert str(parse_version("1.2")) == "1.2.0"

    def test_revision_is_kept(self):
        """The fourth part orders after patch and prints when non-zero."""
        version = parse_version("4.3.0.1")
        assert str(version) == "4.3.0.1"
        assert version > parse_version("4.3.0")

    def test_prerelease_orders_before_release(self):
        """A prerelease is lower than its release."""
        assert parse_version("2.0.0-beta.1") < parse_version("2.0.0")
        assert parse_version("2.0.0-alpha") < parse_version("2.0.0-beta")
        assert parse_version("2.0.0-beta.1").is_prerelease

    def test_build_metadata_dropped(self):
        """Build metadata does not take part in identity."""
        assert parse_version("1.0.0+abc") == parse_version("1.0.0")

    @pytest.mark.parametrize("text", ["", "abc", "1.2.3.4.5", "1..2", "v1.0"])
    def test_invalid_versions(self, text):
        """Invalid strings raise ValueError."""
        with pytest.raises(ValueError):
            parse_version(text)

    def test_try_parse_version(self):
        """try_parse_version returns None instead of raising."""
        assert try_parse_version("nope") is None
        assert try_parse_version(None) is None
        assert try_parse_version("1.0") == parse_version("1.0")


class TestParseRange:
    """Test NuGet version range parsing and canonical printing."""

    def test_bare_version_is_inclusive_minimum(self):
        """'1.0' means >= 1.0."""
        constraint = parse_range("1.0")
        assert str(constraint) == "[1.0.0, )"
        assert constraint.satisfies(parse_version("1.0.0"))
        assert constraint.satisfies(parse_version("9.0.0"))
        assert not constraint.satisfies(parse_version("0.9.0"))

    def test_exact_version(self):
        """'[1.0]' pins one version."""
        constraint = parse_range("[1.0]")
        assert str(constraint) == "[1.0.0]"
        assert constraint.satisfies(parse_version("1.0.0"))
        assert not constraint.satisfies(parse_version("1.0.1"))

    def test_interval(self):
        """Brackets are inclusive, parentheses exclusive."""
        constraint = parse_range("[1.0,2.0)")
        assert str(constraint) == "[1.0.0, 2.0.0)"
        assert constraint.satisfies(parse_version("1.9.9"))
        assert not constraint.satisfies(parse_version("2.0.0"))

    def test_open_ended_intervals(self):
        """Either bound may be omitted."""
        assert str(parse_range("(1.0,)")) == "(1.0.0, )"
        assert str(parse_range("(,2.0]")) == "(, 2.0.0]"
        assert not parse_range("(1.0,)").satisfies(parse_version("1.0.0"))

    def test_missing_range_is_any(self):
        """None, empty and '*' accept everything and float to the latest."""
        for text in (None, "", "*"):
            constraint = parse_range(text)
            assert constraint.float_behavior == FloatBehavior.MAJOR
            assert str(constraint) == "(, ) float:major"

    def test_floating_ranges(self):
        """'1.*' floats within major 1, '1.2.*' within 1.2."""
        assert parse_range("1.*").float_behavior == FloatBehavior.MINOR
        assert parse_range("1.2.*").float_behavior == FloatBehavior.PATCH
        assert str(parse_range("1.2.*")) == "[1.2.0, ) float:patch"

    def test_equal_constraints_print_equal(self):
        """Logically equal ranges share one canonical form."""
        assert str(parse_range("[1.0, 2.0)")) == str(parse_range("[1.0.0,2.0.0)"))
        assert parse_range("[1.0, 2.0)") == parse_range("[1.0.0,2.0.0)")

    @pytest.mark.parametrize("text", ["[1.0", "(1.0)", "[2.0,1.0]", "(1.0,1.0]", "[1.0,2.0,3.0]", "[]", "[a,b]"])
    def test_invalid_ranges(self, text):
        """Malformed or empty intervals raise ValueError."""
        with pytest.raises(ValueError):
            parse_range(text)


class TestFindBestMatch:
    """Test floating behaviors of VersionConstraint.find_best_match."""

    CANDIDATES = versions("1.0.0", "1.1.0", "1.1.5", "2.0.0", "2.3.1", "3.0.0")

    def test_major_float_picks_highest(self):
        """MAJOR float picks the highest satisfying version."""
        constraint = parse_range("1.0").with_float(FloatBehavior.MAJOR)
        assert str(constraint.find_best_match(self.CANDIDATES)) == "3.0.0"

    def test_minor_float_stays_in_major(self):
        """MINOR float stays within the anchor major."""
        constraint = parse_range("1.0").with_float(FloatBehavior.MINOR)
        assert str(constraint.find_best_match(self.CANDIDATES)) == "1.1.5"

    def test_minor_float_with_exclusive_upper_boundary(self):
        """'[1.0, 3.0)' floating minor anchors on major 2."""
        constraint = parse_range("[1.0,3.0)").with_float(FloatBehavior.MINOR)
        assert str(constraint.find_best_match(self.CANDIDATES)) == "2.3.1"

    def test_patch_float_stays_in_minor(self):
        """PATCH float stays within major.minor of the lower bound."""
        assert str(parse_range("1.1.*").find_best_match(self.CANDIDATES)) == "1.1.5"

    def test_float_falls_back_when_scope_empty(self):
        """An empty float scope falls back to the highest match overall."""
        constraint = parse_range("1.5").with_float(FloatBehavior.PATCH)
        assert str(constraint.find_best_match(self.CANDIDATES)) == "3.0.0"

    def test_with_float_keeps_explicit_float(self):
        """with_float does not override a float already requested."""
        constraint = parse_range("1.2.*").with_float(FloatBehavior.MAJOR)
        assert constraint.float_behavior == FloatBehavior.PATCH

    def test_no_match(self):
        """No satisfying candidate gives None."""
        assert parse_range("[5.0,)").find_best_match(self.CANDIDATES) is None


class TestTokens:
    """Test CLI token parsing."""

    def test_rightmost_colon(self):
        """The last colon separates identifier and range."""
        assert tokenize_rightmost_colon("Newtonsoft.Json:[12.0,13.0)") == ("Newtonsoft.Json", "[12.0,13.0)")
        assert tokenize_rightmost_colon("Serilog") == ("Serilog", None)
        assert tokenize_rightmost_colon("Serilog: ") == ("Serilog", None)

    def test_latest_means_no_constraint(self):
        """'latest' is the same as no range."""
        assert parse_package_token("Serilog:latest") == ("Serilog", None)

    def test_range_token(self):
        """A range after the colon is parsed."""
        name, constraint = parse_package_token("Serilog:[2.0]")
        assert name == "Serilog"
        assert str(constraint) == "[2.0.0]"

    def test_missing_identifier(self):
        """An empty identifier is rejected."""
        with pytest.raises(ValueError):
            parse_package_token(":1.0")


class TestVersionSelector:
    """Test VersionSelector.resolve_latest."""

    def _selector(self, packages, **kwargs):
        feed = StubFeed(packages)
        return feed, VersionSelector(feed, ResolutionCache(), **kwargs)

    def test_resolves_highest_by_default(self):
        """Without a constraint the highest stable version wins."""
        _, selector = self._selector({"B": {"1.0.0": leaf(), "1.1.0": leaf(), "2.0.0-rc.1": leaf()}})

        resolved = asyncio.run(selector.resolve_latest("B"))

        assert str(resolved) == "B 1.1.0"

    def test_result_satisfies_constraint(self):
        """The resolved version always satisfies the constraint."""
        _, selector = self._selector({"B": {v: leaf() for v in ("0.9.0", "1.0.0", "1.4.0", "2.0.0")}})

        for text in ("[1.0,2.0)", "(,1.0]", "[2.0]", "1.*", "0.*"):
            constraint = parse_range(text)
            resolved = asyncio.run(selector.resolve_latest("B", constraint))
            assert constraint.satisfies(resolved.version)

    def test_prerelease_policy(self):
        """Prereleases are used when enabled or requested by the lower bound."""
        packages = {"B": {"1.0.0": leaf(), "2.0.0-beta": leaf()}}
        _, stable = self._selector(packages)
        _, pre = self._selector(packages, include_prerelease=True)

        assert str(asyncio.run(stable.resolve_latest("B")).version) == "1.0.0"
        assert str(asyncio.run(pre.resolve_latest("B")).version) == "2.0.0-beta"
        assert str(asyncio.run(stable.resolve_latest("B", parse_range("2.0.0-alpha"))).version) == "2.0.0-beta"

    def test_default_float_applies(self):
        """The selector float applies to constraints carrying none."""
        _, selector = self._selector(
            {"B": {"1.0.0": leaf(), "1.2.0": leaf(), "2.0.0": leaf()}},
            float_behavior=FloatBehavior.MINOR,
        )

        assert str(asyncio.run(selector.resolve_latest("B", parse_range("1.0"))).version) == "1.2.0"

    def test_package_not_found(self):
        """No published versions fails with PackageNotFound."""
        _, selector = self._selector({})

        with pytest.raises(PackageNotFound):
            asyncio.run(selector.resolve_latest("Missing"))

    def test_version_not_found(self):
        """No satisfying version fails with VersionNotFound."""
        _, selector = self._selector({"B": {"1.0.0": leaf()}})

        with pytest.raises(VersionNotFound) as excinfo:
            asyncio.run(selector.resolve_latest("B", parse_range("[2.0,3.0)")))

        assert excinfo.value.constraint == "[2.0.0, 3.0.0)"

    def test_only_prereleases_is_version_not_found(self):
        """A package with prereleases only has no stable match."""
        _, selector = self._selector({"B": {"1.0.0-alpha": leaf()}})

        with pytest.raises(VersionNotFound):
            asyncio.run(selector.resolve_latest("B"))

    def test_empty_name_rejected(self):
        """An empty name is a programming error."""
        _, selector = self._selector({})

        with pytest.raises(ValueError):
            asyncio.run(selector.resolve_latest("  "))

    def test_versions_listed_once(self):
        """Repeated lookups of one name reuse the cached listing."""
        feed, selector = self._selector({"B": {"1.0.0": leaf()}})

        async def run():
            await selector.resolve_latest("B")
            await selector.resolve_latest("b", parse_range("[1.0]"))

        asyncio.run(run())

        assert feed.version_calls["b"] == 1

    def test_pick_reports_reason(self):
        """pick returns a reason when nothing matches."""
        _, selector = self._selector({})

        version, count, error = selector.pick(VersionConstraint.any(), [])

        assert version is None
        assert count == 0
        assert error == "No versions available"
