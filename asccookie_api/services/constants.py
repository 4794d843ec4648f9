"""Constants shared by the cookie storage services."""
from __future__ import annotations

STORAGE_DIRECTORY_NAME = "GKUniqueCookieStorage"

COOKIE_FILE_EXTENSION = "cookiedata"
COOKIE_FILENAME_DELIMITER = "_-_"
PARTITION_PREFIX = "storage_"
DEFAULT_DOMAIN = "default"

# Obfuscates account identifiers in directory names. Not a secret: anyone
# able to read the storage root can recompute it.
NAMESPACE_HASH_KEY = "/B?E(H+MbQeThVmYq3t6w9z$C&F)J@Nc"

# Device-trust cookie that survives a non-exhaustive clear.
PROTECTED_COOKIE_PREFIX = "DES5"

RANDOM_SUFFIX_MIN = 1000
RANDOM_SUFFIX_MAX = 9999

DEFAULT_USER_AGENT = "asccookie-api/0.1 (+requests)"

ENV_STORAGE_ROOT = "ASCCOOKIE_STORAGE_ROOT"
ENV_HASH_KEY = "ASCCOOKIE_HASH_KEY"
ENV_SSL_NO_VERIFY = "ASCCOOKIE_SSL_NO_VERIFY"
ENV_CA_BUNDLE = "ASCCOOKIE_CA_BUNDLE"
ENV_LOG_LEVEL = "ASCCOOKIE_LOG_LEVEL"
