"""Parsing utilities for NuGet versions, version ranges and CLI tokens."""

import re
from typing import Optional, Tuple

import semantic_version

from .models import FloatBehavior, NuGetVersion, VersionConstraint

_VERSION_RE = re.compile(
    r"^(?P<numbers>\d+(?:\.\d+){0,3})"
    r"(?:-(?P<pre>[0-9A-Za-z\-.]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-.]+))?$"
)
_FLOAT_RE = re.compile(r"^(?:(?P<major>\d+)\.)?(?:(?P<minor>\d+)\.)?\*$")


def parse_version(text: str) -> NuGetVersion:
    """Parse a NuGet version string (1 to 4 numeric parts, optional prerelease).

    Build metadata is accepted and dropped. Missing parts default to zero,
    so ``"1.0"`` and ``"1.0.0.0"`` parse to the same version.

    Raises:
        ValueError: If ``text`` is not a valid NuGet version.
    """
    m = _VERSION_RE.match(text.strip()) if text else None
    if not m:
        raise ValueError(f"Invalid NuGet version: {text!r}")
    numbers = [int(part) for part in m.group("numbers").split(".")]
    numbers += [0] * (4 - len(numbers))
    major, minor, patch, revision = numbers
    core = f"{major}.{minor}.{patch}"
    pre = m.group("pre")
    semver = semantic_version.Version(f"{core}-{pre}" if pre else core)
    return NuGetVersion(semver=semver, revision=revision)


def try_parse_version(text: Optional[str]) -> Optional[NuGetVersion]:
    """Safely parse a version string, returning None when invalid."""
    if not text:
        return None
    try:
        return parse_version(text)
    except ValueError:
        return None


def parse_range(text: Optional[str]) -> VersionConstraint:
    """Parse a NuGet version range.

    Supported forms:

    - ``1.0`` minimum version, inclusive
    - ``[1.0]`` exact version
    - ``[1.0,2.0)``, ``(1.0,)``, ``(,2.0]`` interval notation
    - ``*``, ``1.*``, ``1.2.*`` floating ranges

    An empty or missing range means "any version".

    Raises:
        ValueError: If ``text`` is not a valid range.
    """
    if text is None or not text.strip():
        return VersionConstraint.any()
    raw = text.strip()

    floating = _FLOAT_RE.match(raw)
    if floating:
        return _parse_float_range(floating, raw)

    if raw[0] not in "[(":
        return VersionConstraint(min_version=parse_version(raw), min_inclusive=True, original=raw)

    if len(raw) < 2 or raw[-1] not in "])":
        raise ValueError(f"Invalid version range: {text!r}")
    min_inclusive = raw[0] == "["
    max_inclusive = raw[-1] == "]"
    inner = raw[1:-1]

    if "," not in inner:
        # [1.0] is the only single-element form NuGet accepts
        if not (min_inclusive and max_inclusive) or not inner.strip():
            raise ValueError(f"Invalid version range: {text!r}")
        pinned = parse_version(inner.strip())
        return VersionConstraint(
            min_version=pinned,
            min_inclusive=True,
            max_version=pinned,
            max_inclusive=True,
            original=raw,
        )

    parts = inner.split(",")
    if len(parts) != 2:
        raise ValueError(f"Invalid version range: {text!r}")
    lower_str, upper_str = parts[0].strip(), parts[1].strip()
    lower = parse_version(lower_str) if lower_str else None
    upper = parse_version(upper_str) if upper_str else None
    if lower is not None and upper is not None:
        if upper < lower or (upper == lower and not (min_inclusive and max_inclusive)):
            raise ValueError(f"Empty version range: {text!r}")
    return VersionConstraint(
        min_version=lower,
        min_inclusive=min_inclusive if lower is not None else True,
        max_version=upper,
        max_inclusive=max_inclusive if upper is not None else False,
        original=raw,
    )


def _parse_float_range(m: "re.Match[str]", raw: str) -> VersionConstraint:
    """Translate ``*``, ``N.*`` and ``N.M.*`` into a floating constraint."""
    major, minor = m.group("major"), m.group("minor")
    if major is None:
        return VersionConstraint(float_behavior=FloatBehavior.MAJOR, original=raw)
    if minor is None:
        return VersionConstraint(
            min_version=parse_version(major),
            float_behavior=FloatBehavior.MINOR,
            original=raw,
        )
    return VersionConstraint(
        min_version=parse_version(f"{major}.{minor}"),
        float_behavior=FloatBehavior.PATCH,
        original=raw,
    )


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule."""
    s = s.strip()
    if ':' not in s:
        return s, None
    identifier, spec_part = s.rsplit(':', 1)
    spec = spec_part.strip() or None
    return identifier.strip(), spec


def parse_package_token(token: str) -> Tuple[str, Optional[VersionConstraint]]:
    """Parse a ``PackageId[:range]`` CLI token.

    ``latest`` (any case) as the range is the same as no range.

    Raises:
        ValueError: If the identifier is empty or the range is invalid.
    """
    identifier, spec = tokenize_rightmost_colon(token)
    if not identifier:
        raise ValueError(f"Missing package identifier in {token!r}")
    if spec is None or spec.lower() == "latest":
        return identifier, None
    return identifier, parse_range(spec)
