"""
Data contracts shared by the workbench runtime and its windows.
"""

from .events import EventKind, EventPayloadError, PAYLOAD_TYPES, check_payload, to_wire  # noqa: F401
from .manifest_schema import ManifestValidationError, UpdateManifest, parse_manifest  # noqa: F401
