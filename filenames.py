"""
Filename codec for Blog Post Translator

Post files are named "{base_name}.{lang_segment}.md" where the language
segment is one tag ("post.en.md") or a space separated sequence of tags
("post.en ja ko.md"). The first tag is the language the file is written in,
the remaining tags are the extra languages embedded in it.
"""

import os
from dataclasses import dataclass
from typing import Iterable, Tuple
from config import TRANSLATION_CONFIG

EXTENSION = TRANSLATION_CONFIG['extension']


class InvalidFilenameError(ValueError):
    """Raised for post filenames without a language segment"""


@dataclass(frozen=True)
class PostFilename:
    base_name: str
    langs: Tuple[str, ...]

    @property
    def source_lang(self) -> str:
        return self.langs[0]

    @property
    def target_langs(self) -> Tuple[str, ...]:
        return self.langs[1:]

    @property
    def lang_suffix(self) -> str:
        return " ".join(self.langs)

    @property
    def is_multi_lang(self) -> bool:
        return len(self.langs) > 1

    @property
    def filename(self) -> str:
        return compose_filename(self.base_name, self.langs)


def parse_filename(path: str) -> PostFilename:
    """
    Parses a post path into its base name and language tags.
    Raises InvalidFilenameError when no language segment is present.
    """
    filename = os.path.basename(path)
    if not filename.endswith(EXTENSION):
        raise InvalidFilenameError(f"Not a Markdown post: {filename}")

    base_name, sep, lang_segment = filename[:-len(EXTENSION)].partition('.')
    langs = tuple(lang_segment.split())
    if not base_name or not sep or not langs:
        raise InvalidFilenameError(f"No language tag in filename: {filename}")
    if any('.' in lang for lang in langs):
        raise InvalidFilenameError(f"Malformed language segment in filename: {filename}")
    return PostFilename(base_name, langs)


def compose_filename(base_name: str, langs: Iterable[str]) -> str:
    """Builds "{base_name}.{lang lang ...}.md" from a base name and language tags"""
    if isinstance(langs, str):
        langs = langs.split()
    langs = list(langs)
    if not base_name or not langs:
        raise InvalidFilenameError("A post filename needs a base name and at least one language")
    return f"{base_name}.{' '.join(langs)}{EXTENSION}"


def base_name(path: str) -> str:
    return parse_filename(path).base_name


def source_lang(path: str) -> str:
    return parse_filename(path).source_lang


def target_langs(path: str) -> Tuple[str, ...]:
    return parse_filename(path).target_langs


def lang_suffix(path: str) -> str:
    return parse_filename(path).lang_suffix
