"""Global constants for the orchestrator.

This module defines constants used throughout the application to avoid
hardcoded strings and make the codebase more maintainable.
"""

# Step names, in the order they appear in the create/update pipeline
STEP_DEFAULT_VERSION = "default-version-resolution"
STEP_CONNECT = "connect"
STEP_DETECT_OS = "detect-os"
STEP_ACQUIRE_LOCK = "acquire-lock"
STEP_PREPARE_HOSTS = "prepare-hosts"
STEP_GATHER_FACTS = "gather-facts"
STEP_VALIDATE_HOSTS = "validate-hosts"
STEP_GATHER_RUNTIME_FACTS = "gather-runtime-facts"
STEP_VALIDATE_FACTS = "validate-facts"
STEP_VALIDATE_QUORUM = "validate-quorum"
STEP_DOWNLOAD_BINARIES = "download-binaries"
STEP_UPLOAD_BINARIES = "upload-binaries"
STEP_DOWNLOAD_ON_HOSTS = "download-binaries-on-hosts"
STEP_UPLOAD_FILES = "upload-files"
STEP_INSTALL_BINARIES = "install-binaries"
STEP_PREPARE_ARM = "prepare-arm"
STEP_CONFIGURE = "configure-runtime"
STEP_INITIALIZE_LEADER = "initialize-leader"
STEP_INSTALL_CONTROLLERS = "install-controllers"
STEP_INSTALL_WORKERS = "install-workers"
STEP_UPGRADE_CONTROLLERS = "upgrade-controllers"
STEP_UPGRADE_WORKERS = "upgrade-workers"
STEP_FETCH_CREDENTIALS = "fetch-credentials"
STEP_RESET_WORKERS = "reset-workers"
STEP_RESET_CONTROLLERS = "reset-controllers"
STEP_RESET_LEADER = "reset-leader"
STEP_RELEASE_LOCK = "release-lock"
STEP_DISCONNECT = "disconnect"

# Architectures that need the arm preparation step
ARM32_ARCHITECTURES = frozenset({"arm", "armv7", "armv7l", "armhf"})

# Resource type names used in not-found / already-exists errors
RESOURCE_CLUSTER = "Cluster"
