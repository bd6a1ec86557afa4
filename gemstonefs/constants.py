"""Module defining various global constants."""

# gemstonefs version
VERSION = "1.0.0"

# Session gateway protocol
# The major version must be identical on the bridge and the gateway.
PROTOCOL_VERSION = "1.0.0"

# Special exit code for when gemstonefs itself fails.
GEMSTONEFS_ERROR_CODE = 254

# Every mounted session gets its own URI scheme, e.g. "gs1".
SCHEME_PREFIX = "gs"

# Default endpoint for the service that the editor host talks to
DEFAULT_LISTEN_ENDPOINT = "tcp://127.0.0.1:40400"

# Contents of a method file that can't be carved out of its class file-out.
UNSUPPORTED_SOURCE = "We do not yet support '{class_name}>>{selector}'!"
