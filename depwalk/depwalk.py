from importlib.metadata import PackageNotFoundError, version as meta_version

from appdirs import AppDirs


def version() -> str:
    try:
        return meta_version("depwalk")
    except PackageNotFoundError:
        return "unknown"


APP_DIRS = AppDirs("depwalk")
