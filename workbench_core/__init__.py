"""
Notification and self-update core for the workbench desktop client.
"""

__all__ = [
    "app",
    "clipboard",
    "diagnostics",
    "event_registry",
    "global_channel",
    "interactions",
    "local_dispatcher",
    "logger",
    "main",
    "settings",
    "update_capabilities",
    "updater",
    "window_channel",
]
