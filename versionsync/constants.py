from enum import Enum


class ScanPass(Enum):
    Resolve = 1
    Rewrite = 2


# Files that hold the authoritative version of the solution
RESOLVE_FILE_PATTERNS = [
    "SharedAssemblyInfo.cs",
    "SharedAssemblyInfo.vb",
    "SolutionInfo.rc",
]

# Every file whose version tokens are kept in sync
REWRITE_FILE_PATTERNS = RESOLVE_FILE_PATTERNS + [
    "AssemblyInfo.cs",
    "AssemblyInfo.vb",
    "*.rc",
]

FILE_PATTERNS = {
    ScanPass.Resolve: RESOLVE_FILE_PATTERNS,
    ScanPass.Rewrite: REWRITE_FILE_PATTERNS,
}

# Keeps the check-in from triggering another CI build
NO_CI_MARKER = "***NO_CI***"
CHECKIN_COMMENT = "Update version to {version} " + NO_CI_MARKER
