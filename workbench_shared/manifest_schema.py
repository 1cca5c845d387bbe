"""
Update manifest validation shared by the update checker and the installer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


class ManifestValidationError(ValueError):
    """Raised when an update manifest is missing required data or is malformed."""


@dataclass(frozen=True)
class PlatformPackage:
    url: str
    signature: str


@dataclass
class UpdateManifest:
    """
    Metadata describing an available update.

    Only ``version`` is required; the remaining fields follow the updater
    manifest served by the release endpoint and are opaque to the workflow.
    """

    version: str
    notes: str = ""
    pub_date: Optional[datetime] = None
    platforms: Dict[str, PlatformPackage] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    def package_for(self, target: str) -> PlatformPackage:
        try:
            return self.platforms[target]
        except KeyError as exc:
            raise ManifestValidationError(f"No package published for platform '{target}'.") from exc


def parse_manifest(data: Any) -> UpdateManifest:
    """
    Validate a decoded manifest document and return a normalized ``UpdateManifest``.
    """
    if not isinstance(data, dict):
        raise ManifestValidationError("Manifest root must be a JSON object.")

    version = _require_string(data.get("version"), field="version", required=True)
    if version[:1] in {"v", "V"}:
        version = version[1:]
    try:
        parse_version(version)
    except ValueError as exc:
        raise ManifestValidationError(f"version is not a dotted version string: {version}") from exc

    notes = _require_string(data.get("notes"), field="notes", required=False)

    pub_date = None
    pub_date_raw = _require_string(data.get("pub_date"), field="pub_date", required=False)
    if pub_date_raw:
        pub_date = parse_iso8601_utc(pub_date_raw)

    platforms: Dict[str, PlatformPackage] = {}
    raw_platforms = data.get("platforms")
    if raw_platforms is None:
        raw_platforms = {}
    if not isinstance(raw_platforms, dict):
        raise ManifestValidationError("platforms must be an object keyed by target.")
    for target, entry in raw_platforms.items():
        if not isinstance(entry, dict):
            raise ManifestValidationError(f"platforms.{target} must be an object.")
        platforms[str(target)] = PlatformPackage(
            url=_require_string(entry.get("url"), field=f"platforms.{target}.url", required=True),
            signature=_require_string(
                entry.get("signature"), field=f"platforms.{target}.signature", required=True
            ),
        )

    return UpdateManifest(
        version=version,
        notes=notes,
        pub_date=pub_date,
        platforms=platforms,
        raw=dict(data),
    )


def parse_version(text: str) -> Tuple[int, ...]:
    """Parse ``1.2.3`` (pre-release suffixes after ``-`` or ``+`` are ignored)."""
    core = text.strip().lstrip("vV").split("-", 1)[0].split("+", 1)[0]
    if not core:
        raise ValueError("empty version")
    return tuple(int(part) for part in core.split("."))


def is_newer(candidate: str, current: str) -> bool:
    left = parse_version(candidate)
    right = parse_version(current)
    width = max(len(left), len(right))
    return left + (0,) * (width - len(left)) > right + (0,) * (width - len(right))


def parse_iso8601_utc(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp. Values without an offset are taken as UTC;
    the result is always expressed in UTC.
    """
    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(cleaned)
    except ValueError as exc:
        raise ManifestValidationError(
            "pub_date must be in ISO-8601 format (e.g. 2024-01-01T00:00:00Z)."
        ) from exc

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _require_string(value: Any, *, field: str, required: bool) -> str:
    if value is None:
        if required:
            raise ManifestValidationError(f"{field} is required.")
        return ""

    if not isinstance(value, str):
        raise ManifestValidationError(f"{field} must be a string.")

    stripped = value.strip()
    if required and stripped == "":
        raise ManifestValidationError(f"{field} must be a non-empty string.")
    return stripped
