"""Target framework monikers and the nearest-compatible-framework primitive.

Understands both the long names published in NuGet metadata
(``.NETStandard2.0``, ``.NETFramework4.6.1``, ``.NETFramework,Version=v4.5``)
and the short folder names used on the command line (``netstandard2.0``,
``net461``, ``netcoreapp3.1``, ``net6.0-windows``).

Precedence when picking the nearest dependency group for a target: the same
framework family beats a compatible .NET Standard profile, which beats the
framework-agnostic group. Inside a tier the highest compatible version wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

NET_FRAMEWORK = ".NETFramework"
NET_STANDARD = ".NETStandard"
NET_COREAPP = ".NETCoreApp"
ANY = "Any"
UNSUPPORTED = "Unsupported"

_SHORT_IDENTIFIERS = {
    "netstandard": NET_STANDARD,
    "netcoreapp": NET_COREAPP,
    "net": NET_FRAMEWORK,
}
_LONG_IDENTIFIERS = {
    ".netframework": NET_FRAMEWORK,
    ".netstandard": NET_STANDARD,
    ".netcoreapp": NET_COREAPP,
    ".netplatform": NET_STANDARD,
}
_SHORT_NAMES = {NET_FRAMEWORK: "net", NET_STANDARD: "netstandard", NET_COREAPP: "netcoreapp"}

# Highest .NET Standard version each target can consume, lowest target first.
_STANDARD_SUPPORT = {
    NET_COREAPP: [((1, 0), (1, 6)), ((2, 0), (2, 0)), ((3, 0), (2, 1))],
    NET_FRAMEWORK: [((4, 5), (1, 1)), ((4, 5, 1), (1, 2)), ((4, 6), (1, 3)), ((4, 6, 1), (2, 0))],
}

_NAME_RE = re.compile(r"^(?P<ident>[A-Za-z.]+?)(?P<version>\d[\d.]*)?$")
_LONG_VERSION_RE = re.compile(r"^(?P<ident>[^,]+),\s*Version=v?(?P<version>[\d.]+)", re.IGNORECASE)

Version = Tuple[int, int, int, int]


def _version_tuple(text: Optional[str], dotted_required: bool = False) -> Version:
    if not text:
        return (0, 0, 0, 0)
    text = text.strip(".")
    if "." in text or dotted_required:
        parts = [int(p) for p in text.split(".") if p]
    else:
        # Legacy short form: net461 -> 4.6.1, net48 -> 4.8
        parts = [int(ch) for ch in text]
    parts = (parts + [0, 0, 0, 0])[:4]
    return parts[0], parts[1], parts[2], parts[3]


def _trim(version: Version) -> Tuple[int, ...]:
    parts = list(version)
    while len(parts) > 2 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


@dataclass(frozen=True)
class Framework:
    """A parsed target framework moniker."""

    identifier: str
    version: Version = (0, 0, 0, 0)
    platform: Optional[str] = None
    raw: str = field(default="", compare=False)

    @property
    def is_any(self) -> bool:
        return self.identifier == ANY

    @property
    def is_unsupported(self) -> bool:
        return self.identifier == UNSUPPORTED

    def short_folder_name(self) -> str:
        """Short moniker used in messages, e.g. ``net461`` or ``net5.0``."""
        if self.is_any:
            return "any"
        if self.is_unsupported:
            return self.raw
        short = _SHORT_NAMES.get(self.identifier)
        if short is None:
            return self.raw or self.identifier
        if self.identifier == NET_FRAMEWORK:
            return "net" + "".join(str(p) for p in _trim(self.version))
        if self.identifier == NET_COREAPP and self.version[0] >= 5:
            name = f"net{self.version[0]}.{self.version[1]}"
        else:
            name = short + ".".join(str(p) for p in _trim(self.version))
        if self.platform:
            name += f"-{self.platform}"
        return name

    def __str__(self) -> str:
        return self.short_folder_name()


ANY_FRAMEWORK = Framework(ANY, raw="any")


def parse_framework(text: Optional[str]) -> Framework:
    """Parse a long or short framework name.

    Empty, ``any`` and ``agnostic`` mean the framework-agnostic moniker.
    Names that cannot be understood parse to an unsupported framework that
    keeps the raw text.
    """
    raw = (text or "").strip()
    if raw.lower() in ("", "any", "agnostic"):
        return ANY_FRAMEWORK

    long_match = _LONG_VERSION_RE.match(raw)
    if long_match:
        ident = _LONG_IDENTIFIERS.get(long_match.group("ident").strip().lower())
        if ident is None:
            return Framework(long_match.group("ident").strip(), _version_tuple(long_match.group("version"), True), raw=raw)
        return Framework(ident, _version_tuple(long_match.group("version"), True), raw=raw)

    name, _, platform = raw.partition("-")
    # net6.0-windows10.0 and net6.0-windows are the same platform for matching
    platform = re.sub(r"[\d.]+$", "", platform)
    m = _NAME_RE.match(name)
    if not m:
        return Framework(UNSUPPORTED, raw=raw)
    ident_text = m.group("ident").lower()
    version_text = m.group("version")

    if ident_text in _LONG_IDENTIFIERS:
        return Framework(_LONG_IDENTIFIERS[ident_text], _version_tuple(version_text, True), platform or None, raw)
    if ident_text in _SHORT_IDENTIFIERS:
        if not version_text:
            return Framework(UNSUPPORTED, raw=raw)
        ident = _SHORT_IDENTIFIERS[ident_text]
        version = _version_tuple(version_text)
        if ident == NET_FRAMEWORK and version[0] >= 5:
            # net5.0 and later are .NET Core
            ident = NET_COREAPP
        return Framework(ident, version, platform or None, raw)
    if version_text is None:
        return Framework(UNSUPPORTED, raw=raw)
    return Framework(m.group("ident"), _version_tuple(version_text), platform or None, raw)


def _max_standard_for(target: Framework) -> Optional[Tuple[int, ...]]:
    supported = None
    for minimum, standard in _STANDARD_SUPPORT.get(target.identifier, []):
        if _trim(target.version) >= minimum:
            supported = standard
    return supported


def is_compatible(target: Framework, candidate: Framework) -> bool:
    """True when a package built for ``candidate`` can be consumed by ``target``."""
    if candidate.is_any or target.is_any:
        return True
    if target.is_unsupported or candidate.is_unsupported:
        return False
    if candidate.identifier == target.identifier:
        if candidate.platform and candidate.platform.lower() != (target.platform or "").lower():
            return False
        return candidate.version <= target.version
    if candidate.identifier == NET_STANDARD:
        max_standard = _max_standard_for(target)
        return max_standard is not None and _trim(candidate.version) <= max_standard
    return False


def _tier(target: Framework, candidate: Framework) -> int:
    if target.is_any:
        if candidate.is_any:
            return 0
        return 1 if candidate.identifier == NET_STANDARD else 2
    if candidate.identifier == target.identifier:
        return 0
    if candidate.identifier == NET_STANDARD:
        return 1
    return 2


def nearest_compatible(target: Framework, candidates: Iterable[Framework]) -> Optional[Framework]:
    """Pick the nearest compatible candidate for ``target``, or None."""
    best: Optional[Framework] = None
    best_rank = None
    for candidate in candidates:
        if not is_compatible(target, candidate):
            continue
        rank = (-_tier(target, candidate), candidate.version, bool(candidate.platform))
        if best_rank is None or rank > best_rank:
            best, best_rank = candidate, rank
    return best
