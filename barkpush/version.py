"""Version information for barkpush."""

from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """
    Get the installed package version.

    Returns:
        Version string (e.g., "0.1.0"), or "unknown" when not installed
    """
    try:
        return version("barkpush")
    except PackageNotFoundError:
        return "unknown"
