"""Virtual path resolution inside an unlocked vault.

Virtual paths are absolute, slash-separated and normalized: no empty,
"." or ".." segments, always a leading "/", and "/" for the root.
Nothing here touches the disk.
"""

ROOT = "/"


def segments(path: str) -> list[str]:
    """
    Split a path and resolve "." and ".." segments.

    Popping past the root is a no-op, never an error.
    """
    stack: list[str] = []
    for part in path.split("/"):
        if not part or part == ".":
            continue
        if part == "..":
            if stack:
                stack.pop()
        else:
            stack.append(part)
    return stack


def normalize(path: str) -> str:
    """Normalize a path into its absolute virtual form."""
    return "/" + "/".join(segments(path))


def resolve(base: str, value: str) -> str:
    """
    Resolve a user-supplied path against the current directory.

    Args:
        base: Current virtual directory
        value: Relative or absolute path typed by the user

    Returns:
        Normalized absolute virtual path
    """
    if value.startswith("/"):
        return normalize(value)
    return normalize(f"{base}/{value}")


def join(parent: str, name: str) -> str:
    return normalize(f"{parent}/{name}")


def parent(path: str) -> str:
    return "/" + "/".join(segments(path)[:-1])


def basename(path: str) -> str:
    parts = segments(path)
    return parts[-1] if parts else ""


def is_root(path: str) -> bool:
    return not segments(path)
