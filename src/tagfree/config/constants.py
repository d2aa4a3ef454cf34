"""
System constants that should never change.

These are technical limits, not user preferences.
User-configurable values belong in tagfree.yaml instead.
"""

DEFAULT_CONFIG_NAME = "tagfree.yaml"
DEFAULT_MANIFEST_NAME = "manifest.json"
DEFAULT_MAX_REASON_LENGTH = 4000  # Upper bound for diagnostics stored in the manifest

VERBOSE_LOGGING_THRESHOLD = 2  # -vv switches on debug output
EXIT_INTERRUPTED = 130  # Standard exit code for SIGINT
