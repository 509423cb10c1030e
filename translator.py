"""
Main module for Blog Post Translator

Drives the translation of a posts directory: finds the source posts,
plans the missing translations, calls the translation engine one file
and language at a time, and reports what was translated, skipped and failed
"""

import argparse
import enum
import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from typing import Optional, Sequence
from tqdm import tqdm

from api_client import TranslationEngine, TranslationError, build_engine
from config import (ENGINES, TRANSLATION_CONFIG, ConfigurationError, RunConfig,
                    default_log_file, load_env_file)
from corpus import (SourceDocument, artifact_path, discover_sources,
                    multi_translation_exists, translation_exists)
from filenames import compose_filename
from logger import setup_logger, set_verbose_mode, log_file_of
from planner import MultiLanguagePlan, NoOpPlan, plan
from utils import atomic_write_bytes, read_bytes

logger = logging.getLogger('post_translator')

SEPARATOR = "-" * 40
BANNER = "=" * 41


class Status(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class Outcome:
    status: Status
    reason: str = ""

    @classmethod
    def success(cls) -> 'Outcome':
        return cls(Status.SUCCESS)

    @classmethod
    def failure(cls, reason: str) -> 'Outcome':
        return cls(Status.FAILURE, reason)

    @classmethod
    def already_exists(cls) -> 'Outcome':
        return cls(Status.ALREADY_EXISTS)


class FileStatus(enum.Enum):
    SUCCESS = "success"
    PARTIAL_ERROR = "partial_error"
    SKIPPED = "skipped"


@dataclass
class FileCounts:
    translated: int = 0
    skipped: int = 0
    errors: int = 0

    def record(self, outcome: Outcome) -> None:
        if outcome.status is Status.SUCCESS:
            self.translated += 1
        elif outcome.status is Status.FAILURE:
            self.errors += 1
        else:
            self.skipped += 1

    @property
    def status(self) -> FileStatus:
        if self.translated > 0:
            return FileStatus.SUCCESS
        if self.errors > 0:
            return FileStatus.PARTIAL_ERROR
        return FileStatus.SKIPPED


@dataclass
class RunReport:
    files_processed: int = 0
    files_needing_translation: int = 0
    files_with_new_translations: int = 0
    files_skipped: int = 0
    files_with_errors: int = 0
    total_translated: int = 0
    total_skipped: int = 0
    total_errors: int = 0
    log_file: Optional[str] = None

    def add(self, counts: FileCounts) -> None:
        self.files_processed += 1
        self.total_translated += counts.translated
        self.total_skipped += counts.skipped
        self.total_errors += counts.errors
        if counts.translated > 0:
            self.files_needing_translation += 1

        status = counts.status
        if status is FileStatus.SUCCESS:
            self.files_with_new_translations += 1
        elif status is FileStatus.PARTIAL_ERROR:
            self.files_with_errors += 1
        else:
            self.files_skipped += 1

    @property
    def exit_code(self) -> int:
        return 0 if self.files_with_errors == 0 else 1

    def log_summary(self) -> None:
        logger.info(BANNER)
        logger.info("Translation complete!")
        logger.info("Summary:")
        logger.info(f"  Files processed: {self.files_processed}")
        logger.info(f"  Files that needed translation: {self.files_needing_translation}")
        logger.info(f"  Files with new translations: {self.files_with_new_translations}")
        logger.info(f"  Files skipped (all translations exist): {self.files_skipped}")
        logger.info(f"  Files with errors: {self.files_with_errors}")
        logger.info(SEPARATOR)
        logger.info(f"  Total translations created: {self.total_translated}")
        logger.info(f"  Total translations skipped: {self.total_skipped}")
        logger.info(f"  Total translation errors: {self.total_errors}")
        logger.info(BANNER)
        if self.log_file:
            logger.info(f"Complete build log available at: {self.log_file}")
            if self.total_errors > 0:
                logger.info("Tip: Check the build log for detailed error information")


def invoke_single(document: SourceDocument, lang: str, config: RunConfig,
                  engine: TranslationEngine) -> Outcome:
    """
    Translates one post into one language, writing "{base}.{lang}.md".
    The existence check is repeated right before the engine call.
    """
    base_name = document.base_name
    target_file = artifact_path(config.posts_dir, base_name, [lang])

    if translation_exists(config.posts_dir, base_name, lang):
        logger.info(f"Skipping {os.path.basename(target_file)} (already exists)")
        return Outcome.already_exists()

    logger.info(f"Translating {base_name} from {config.source_lang} to {lang}...")
    with tempfile.TemporaryDirectory(prefix="translate-posts-") as tmp_dir:
        buffer = os.path.join(tmp_dir, compose_filename(base_name, [lang]))
        try:
            engine.translate(document.path, buffer, lang)
        except TranslationError as e:
            logger.error(f"Failed to translate {base_name} to {lang}: {e}")
            return Outcome.failure(str(e))
        try:
            atomic_write_bytes(target_file, read_bytes(buffer))
        except OSError as e:
            logger.error(f"Failed to write {os.path.basename(target_file)}: {e}")
            return Outcome.failure(str(e))

    logger.info(f"Created {os.path.basename(target_file)}")
    return Outcome.success()


def combine_translations(source_content: bytes, translations: Sequence[tuple]) -> bytes:
    """Source bytes followed by one marked section per language, copied as-is"""
    parts = [source_content]
    for lang, content in translations:
        marker = TRANSLATION_CONFIG['section_marker'].format(lang=lang)
        parts.append(f"\n\n{marker}\n\n".encode('utf-8'))
        parts.append(content)
    return b"".join(parts)


def invoke_multi(document: SourceDocument, langs: Sequence[str], config: RunConfig,
                 engine: TranslationEngine) -> Outcome:
    """
    Translates one post into several languages and writes them as a single
    combined file "{base}.{lang lang ...}.md". Nothing is written unless
    every language succeeded.
    """
    base_name = document.base_name
    target_file = artifact_path(config.posts_dir, base_name, langs)
    target_name = os.path.basename(target_file)

    if multi_translation_exists(config.posts_dir, base_name, langs):
        logger.info(f"Skipping {target_name} (already exists)")
        return Outcome.already_exists()

    logger.info(f"Translating {base_name} from {document.name.source_lang} "
                f"to multiple languages: {' '.join(langs)}...")

    translations, failed = [], []
    with tempfile.TemporaryDirectory(prefix="translate-posts-") as tmp_dir:
        for lang in langs:
            buffer = os.path.join(tmp_dir, compose_filename(base_name, [lang]))
            logger.info(f"Starting translation for {base_name} to {lang}...")
            try:
                engine.translate(document.path, buffer, lang)
                translations.append((lang, read_bytes(buffer)))
            except (TranslationError, OSError) as e:
                logger.error(f"Failed to translate {base_name} to {lang}: {e}")
                failed.append(lang)

    if failed:
        logger.error(f"Failed to create combined translation file {target_name}")
        return Outcome.failure(f"failed languages: {' '.join(failed)}")

    try:
        atomic_write_bytes(target_file, combine_translations(read_bytes(document.path), translations))
    except OSError as e:
        logger.error(f"Failed to write combined translation file {target_name}: {e}")
        return Outcome.failure(str(e))
    logger.info(f"Created combined translation file {target_name}")
    return Outcome.success()


def process_source_file(document: SourceDocument, config: RunConfig,
                        engine: TranslationEngine) -> FileCounts:
    """Plans and runs every missing translation of one source post"""
    counts = FileCounts()
    logger.info(f"Processing {document.base_name}...")

    work = plan(document, config)

    if isinstance(work, NoOpPlan):
        logger.info(f"Skipping {document.base_name} (all translations exist)")
        counts.skipped += len(work.skipped)
        return counts

    if isinstance(work, MultiLanguagePlan):
        outcome = invoke_multi(document, work.langs, config, engine)
        counts.record(outcome)
        return counts

    counts.skipped += len(work.skipped)
    for lang in work.langs:
        outcome = invoke_single(document, lang, config, engine)
        counts.record(outcome)
    return counts


def check_prerequisites(config: RunConfig, engine: TranslationEngine) -> None:
    """Fails fast on anything that would make every translation fail"""
    logger.info("Checking prerequisites...")

    if not os.path.isdir(config.posts_dir):
        raise ConfigurationError(f"Posts directory '{config.posts_dir}' does not exist")

    engine.ensure_installed()

    if not config.api_key:
        logger.warning("No API key is set. Export it or put it in a .env file (see --env-file)")
    else:
        logger.info("API key is set")

    logger.info("All prerequisites met")


def translate_posts(config: RunConfig, engine: Optional[TranslationEngine] = None) -> RunReport:
    """
    Translates every source post in the posts directory.
    Raises ConfigurationError before touching any post if setup fails.
    """
    engine = engine or build_engine(config)
    report = RunReport(log_file=log_file_of(logger))

    logger.info(BANNER)
    logger.info("   Blog Post Translation Automation")
    logger.info(BANNER)

    check_prerequisites(config, engine)

    logger.info(f"Source language: {config.source_lang}")
    logger.info(f"Target languages: {' '.join(config.effective_targets)}")
    logger.info(f"Posts directory: {config.posts_dir}")
    logger.info(f"Engine: {engine.name} (model: {engine.model or 'default'})")
    logger.info(SEPARATOR)

    documents = discover_sources(config.posts_dir, config.source_lang)
    if not documents:
        logger.warning(f"No {config.source_lang} files found in {config.posts_dir}")
        return report

    logger.info(f"Found {len(documents)} {config.source_lang} files to process")

    # Initialize progress bar
    pbar = tqdm(total=len(documents), ncols=70, disable=not config.verbose)

    for index, document in enumerate(documents, start=1):
        logger.info(SEPARATOR)
        logger.info(f"Processing file {index} of {len(documents)}: {document.name.filename}")

        counts = process_source_file(document, config, engine)
        report.add(counts)
        logger.info(f"{document.name.filename}: translated={counts.translated} "
                    f"skipped={counts.skipped} errors={counts.errors}")

        status = counts.status
        if status is FileStatus.SUCCESS:
            logger.info("Completed file with new translations")
        elif status is FileStatus.PARTIAL_ERROR:
            logger.warning(f"Completed {document.name.filename} with errors")
        else:
            logger.info("Skipped file (all translations exist)")
        pbar.update(1)

    pbar.close()
    report.log_summary()
    return report


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the translation run"""
    parser = argparse.ArgumentParser(description='Translate Markdown blog posts into missing languages')
    parser.add_argument('--posts-dir', help='Directory holding the posts (env: POSTS_DIR)')
    parser.add_argument('--source-lang', help='Language of the source posts (env: SOURCE_LANG)')
    parser.add_argument('--target-langs', help='Space separated target languages (env: TARGET_LANGS)')
    parser.add_argument('--engine', choices=ENGINES,
                        help='Translation engine (env: TRANSLATION_ENGINE)')
    parser.add_argument('--model', help='Model passed to the translation engine')
    parser.add_argument('--env-file', help='File with KEY=value settings (default: .env in the current directory)')
    parser.add_argument('--log-file', help='Build log path (default: a file in the temp directory)')
    parser.add_argument('--quiet', action='store_true', help='Only show warnings and errors on the console')
    args = parser.parse_args(argv)

    log_file = args.log_file or default_log_file()
    try:
        run_logger = setup_logger(log_file)
    except OSError as error:
        logging.error(f"Cannot open build log {log_file}: {error}")
        return 1

    env_file = args.env_file or os.path.join(os.getcwd(), '.env')
    if load_env_file(env_file):
        run_logger.info(f"Loaded environment variables from: {env_file}")

    try:
        config = RunConfig.from_env(
            posts_dir=args.posts_dir,
            source_lang=args.source_lang,
            target_langs=args.target_langs,
            engine=args.engine,
            model=args.model,
            verbose=not args.quiet,
            log_file=log_file,
        )
        set_verbose_mode(run_logger, config.verbose)
        report = translate_posts(config)
    except ConfigurationError as error:
        run_logger.error(str(error))
        return 1

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
