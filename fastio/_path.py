SEPARATOR = "\\"
MAX_PATH = 260

REGULAR_SHARE_PATH_PREFIX = "\\\\"
UNC_LOCAL_PATH_PREFIX = "\\\\?\\"
UNC_SHARE_PATH_PREFIX = "\\\\?\\UNC\\"


def is_long_safe(path: str) -> bool:
    return path.startswith(UNC_LOCAL_PATH_PREFIX)


def to_long_safe_path(path: str) -> str:
    """Escape *path* so native calls accept it beyond MAX_PATH.

    Paths shorter than MAX_PATH, and paths that already carry a prefix, are
    returned as-is.
    """
    if len(path) < MAX_PATH or is_long_safe(path):
        return path
    if path.startswith(REGULAR_SHARE_PATH_PREFIX):
        # \\server\share\x >> \\?\UNC\server\share\x
        return UNC_SHARE_PATH_PREFIX + path[len(REGULAR_SHARE_PATH_PREFIX):]
    return UNC_LOCAL_PATH_PREFIX + path


def to_share_regular_path(unc_share_path: str) -> str:
    # \\?\UNC\server\share >> \\server\share
    return REGULAR_SHARE_PATH_PREFIX + unc_share_path[len(UNC_SHARE_PATH_PREFIX):]


def to_local_regular_path(unc_local_path: str) -> str:
    return unc_local_path[len(UNC_LOCAL_PATH_PREFIX):]


def to_regular_path(path: str) -> str:
    """Strip either long-safe prefix, for paths shown to humans."""
    if path.startswith(UNC_SHARE_PATH_PREFIX):
        return to_share_regular_path(path)
    if path.startswith(UNC_LOCAL_PATH_PREFIX):
        return to_local_regular_path(path)
    return path


def strip_trailing_separator(path: str) -> str:
    if path.endswith(SEPARATOR):
        return path[:-1]
    return path


def ensure_trailing_separator(path: str) -> str:
    if path.endswith(SEPARATOR):
        return path
    return path + SEPARATOR


def join(directory: str, name: str) -> str:
    return ensure_trailing_separator(directory) + name


def split(path: str) -> tuple[str, str]:
    """Split at the last separator: ``C:\\a\\b`` >> (``C:\\a``, ``b``)."""
    index = path.rfind(SEPARATOR)
    if index < 0:
        return "", path
    return path[:index], path[index + 1:]


def is_blank(path: str | None) -> bool:
    return path is None or not path.strip()
