"""
Utility functions for Blog Post Translator

Small file helpers shared by the corpus scanner and the translation driver
"""

import os


def truncate_str(s: str, length: int = 30) -> str:
    """Truncates string with ellipsis in middle if too long"""
    return f"{s[:length]}...{s[-length:]}" if len(s) > length * 2 else s


def is_valid_artifact(path: str) -> bool:
    """A translation counts only if the file exists and is not empty"""
    return os.path.isfile(path) and os.path.getsize(path) > 0


def read_text(path: str) -> str:
    with open(path, mode='r', encoding='utf-8') as f:
        return f.read()


def read_bytes(path: str) -> bytes:
    with open(path, mode='rb') as f:
        return f.read()


def atomic_write_bytes(path: str, content: bytes) -> None:
    """
    Writes content next to the target and renames it into place,
    so readers never observe a half-written file
    """
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = os.path.join(directory, f".{os.path.basename(path)}.tmp.{os.getpid()}")
    try:
        with open(tmp_path, mode='wb') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
