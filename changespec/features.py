"""Capability set negotiated with the connected batch changes service."""

import logging
import re

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

_DEV_VERSIONS = {"dev", "0.0.0+dev"}
# Insider builds: 54959_2021-07-01_abcdef1
_BUILD_DATE = re.compile(r"^\d+_(\d{4}-\d{2}-\d{2})_[a-z0-9]{7,}$")
_SEMVER = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?(?:[-+].*)?$")

# flag -> (minimum release, minimum insider build date)
_MINIMUMS: dict[str, tuple[tuple[int, int, int], str]] = {
    "include_auto_author_details": ((3, 20, 0), "2020-09-10"),
    "allow_optional_published": ((3, 30, 0), "2021-06-21"),
}


class FeatureFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    allow_optional_published: bool = False  # published may be omitted / absent
    include_auto_author_details: bool = False  # author defaults when the template has none

    @classmethod
    def latest(cls) -> "FeatureFlags":
        return cls(allow_optional_published=True, include_auto_author_details=True)

    @classmethod
    def from_version(cls, version: str) -> "FeatureFlags":
        """Derive the capability set from a service product version.

        Accepts release versions (``3.30.1``), insider build versions
        (``54959_2021-07-01_abcdef1``) and development builds (``dev``).
        Raises ``ValueError`` for anything else.
        """
        flags = {name: supports(version, minimum, min_date) for name, (minimum, min_date) in _MINIMUMS.items()}
        logger.debug("features for version %s: %s", version, flags)
        return cls(**flags)


def supports(version: str, minimum: tuple[int, int, int], min_date: str) -> bool:
    version = version.strip()
    if version in _DEV_VERSIONS:
        return True
    build = _BUILD_DATE.match(version)
    if build:
        return build.group(1) >= min_date
    release = _SEMVER.match(version)
    if not release:
        raise ValueError(f"cannot parse service version {version!r}")
    major, minor, patch = (int(part or 0) for part in release.groups())
    return (major, minor, patch) >= minimum
