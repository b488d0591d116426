LUCIDE_ICONS_URL = "https://github.com/lucide-icons/lucide"

PACKAGE_REPO_URL = "https://github.com/soenneker/{library_lower}".format

DEFAULT_LIBRARY = "Soenneker.Lucide.Icons"

HASH_FILE = "hash.txt"

COMMIT_MESSAGE = "Updates hash for new version"

BUILD_CONFIGURATION = "Release"

NUGET_SOURCE = "https://api.nuget.org/v3/index.json"

# Strict environment variables, the run fails if any of these is read unset.
ENV_BUILD_VERSION = "BUILD_VERSION"
ENV_NUGET_TOKEN = "NUGET__TOKEN"
ENV_GIT_NAME = "GIT__NAME"
ENV_GIT_EMAIL = "GIT__EMAIL"
ENV_GH_USERNAME = "GH__USERNAME"
ENV_GH_TOKEN = "GH__TOKEN"

# package name, version -> Soenneker.Lucide.Icons.1.2.3.nupkg
NUPKG_NAME = "{library}.{version}.nupkg".format
