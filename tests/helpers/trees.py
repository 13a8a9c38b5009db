from fastio import FileRecord, MemoryScanAPI

ROOT = "C:\\data"


def build_sample_tree(api: MemoryScanAPI, root: str = ROOT) -> None:
    r"""
    C:\data
      a.txt, b.txt
      sub1\c.txt
      sub2\d.txt
    """
    api.write_file(root + "\\a.txt", b"alpha")
    api.write_file(root + "\\b.txt", b"bravo!")
    api.write_file(root + "\\sub1\\c.txt", b"c")
    api.write_file(root + "\\sub2\\d.txt", b"")


def build_tree(
    api: MemoryScanAPI,
    root: str,
    depth: int,
    dirs_per_level: int,
    files_per_dir: int,
) -> tuple[set[str], set[str]]:
    """Build a regular tree; return (file paths, directory paths) below *root*."""
    files: set[str] = set()
    dirs: set[str] = set()
    api.mkdir(root)

    def fill(directory: str, level: int) -> None:
        for i in range(files_per_dir):
            path = f"{directory}\\file_{level}_{i}.dat"
            api.write_file(path, b"x" * i)
            files.add(path)
        if level >= depth:
            return
        for i in range(dirs_per_level):
            child = f"{directory}\\dir_{level}_{i}"
            api.mkdir(child)
            dirs.add(child)
            fill(child, level + 1)

    fill(root, 0)
    return files, dirs


def paths(records) -> set[str]:
    return {r.path for r in records}


def file_paths(entries) -> set[str]:
    return {e.path for e in entries if isinstance(e, FileRecord)}
