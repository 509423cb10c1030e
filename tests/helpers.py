import os
from typing import Iterable, List, Tuple

from api_client import TranslationEngine, TranslationError


class FakeEngine(TranslationEngine):
    """Writes "[lang] <source>" for every call, failing for the given languages"""
    name = "fake"

    def __init__(self, failing: Iterable[str] = ()):
        self.failing = set(failing)
        self.calls: List[Tuple[str, str, str]] = []

    def translate(self, input_path: str, output_path: str, target_lang: str) -> None:
        self.calls.append((os.path.basename(input_path), output_path, target_lang))
        if target_lang in self.failing:
            raise TranslationError(f"forced failure for {target_lang}")
        with open(input_path, encoding="utf-8") as f:
            content = f.read()
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(f"[{target_lang}] {content}")

    @property
    def langs(self) -> List[str]:
        return [lang for _, _, lang in self.calls]


def write_post(posts_dir: str, filename: str, content: str = "# 标题\n\n正文\n") -> str:
    path = os.path.join(posts_dir, filename)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


class CopyEngine(TranslationEngine):
    """Copies the source bytes unchanged, like an external tool that never decodes them"""
    name = "copy"

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []

    def translate(self, input_path: str, output_path: str, target_lang: str) -> None:
        self.calls.append((os.path.basename(input_path), target_lang))
        with open(input_path, "rb") as src, open(output_path, "wb") as dst:
            dst.write(src.read())
