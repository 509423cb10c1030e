"""
Corpus scanning for Blog Post Translator

Answers "is this translation already there?" from the posts directory
and finds the source posts to work on. Nothing is cached: every call
looks at the disk again, so reruns pick up where a previous run stopped.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Sequence, Union
from filenames import (PostFilename, InvalidFilenameError, parse_filename,
                       compose_filename, EXTENSION)
from utils import is_valid_artifact

logger = logging.getLogger('post_translator')


@dataclass(frozen=True)
class SourceDocument:
    path: str
    name: PostFilename

    @property
    def base_name(self) -> str:
        return self.name.base_name


def artifact_path(posts_dir: str, base_name: str, langs: Union[str, Sequence[str]]) -> str:
    return os.path.join(posts_dir, compose_filename(base_name, langs))


def translation_exists(posts_dir: str, base_name: str, lang: str) -> bool:
    """
    True if a non-empty translation into lang exists, either as its own
    file or as one of the languages of a combined multi-language file
    """
    if is_valid_artifact(artifact_path(posts_dir, base_name, [lang])):
        return True

    prefix = f"{base_name}."
    for filename in os.listdir(posts_dir):
        if not filename.startswith(prefix) or not filename.endswith(EXTENSION) or ' ' not in filename:
            continue
        try:
            name = parse_filename(filename)
        except InvalidFilenameError:
            continue
        # Exact tag match: "en" must not match "en-us"
        if name.base_name == base_name and lang in name.langs:
            if is_valid_artifact(os.path.join(posts_dir, filename)):
                return True
    return False


def multi_translation_exists(posts_dir: str, base_name: str, langs: Union[str, Sequence[str]]) -> bool:
    """Strict check for one exact combined file, without scanning"""
    return is_valid_artifact(artifact_path(posts_dir, base_name, langs))


def discover_sources(posts_dir: str, source_lang: str) -> List[SourceDocument]:
    """
    Lists source posts: files whose first language tag is source_lang,
    single-language ones first, then multi-language ones, each sorted by name
    """
    single, multi = [], []
    for filename in sorted(os.listdir(posts_dir)):
        path = os.path.join(posts_dir, filename)
        if not filename.endswith(EXTENSION) or not os.path.isfile(path):
            continue
        try:
            name = parse_filename(filename)
        except InvalidFilenameError as error:
            logger.warning(f"Ignoring {filename}: {error}")
            continue
        if name.source_lang != source_lang:
            continue
        (multi if name.is_multi_lang else single).append(SourceDocument(path, name))
    return single + multi
