"""
Reconciliation planner for Blog Post Translator

Decides, per source post, which translations still have to be produced
"""

import logging
from dataclasses import dataclass, field
from typing import Tuple, Union
from config import RunConfig
from corpus import SourceDocument, translation_exists

logger = logging.getLogger('post_translator')


@dataclass(frozen=True)
class MultiLanguagePlan:
    """One combined output holding every embedded target language"""
    langs: Tuple[str, ...]


@dataclass(frozen=True)
class IndividualPlan:
    """One output file per missing target language"""
    langs: Tuple[str, ...]
    skipped: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class NoOpPlan:
    """Every target language is already satisfied"""
    skipped: Tuple[str, ...] = field(default_factory=tuple)


Plan = Union[MultiLanguagePlan, IndividualPlan, NoOpPlan]


def plan(document: SourceDocument, config: RunConfig) -> Plan:
    """
    Builds the work list for a source post.
    A source embedding two or more target tags ("post.zh-cn en ja.md")
    gets a single combined work item; anything else is planned language
    by language over the configured targets, skipping satisfied ones.
    """
    embedded = tuple(dict.fromkeys(
        lang for lang in document.name.target_langs if lang != config.source_lang))
    if len(embedded) > 1:
        logger.info(f"Detected multi-language file with target languages: {' '.join(embedded)}")
        return MultiLanguagePlan(embedded)

    missing, skipped = [], []
    for lang in config.effective_targets:
        if translation_exists(config.posts_dir, document.base_name, lang):
            skipped.append(lang)
        else:
            missing.append(lang)

    if not missing:
        return NoOpPlan(tuple(skipped))
    return IndividualPlan(tuple(missing), tuple(skipped))
