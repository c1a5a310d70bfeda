__version__ = "1.1.0"

# Ordered; the first entry is the oldest schema still accepted.
SUPPORTED_SCHEMA_VERSIONS = ("1.0", "1.1")
