import logging
import os
import tempfile
import unittest
from unittest.mock import patch

from config import ConfigurationError, RunConfig
from corpus import SourceDocument
from filenames import parse_filename
from tests.helpers import CopyEngine, FakeEngine, write_post
from translator import (FileStatus, Status, combine_translations, invoke_multi,
                        invoke_single, main, process_source_file, translate_posts)

SOURCE = "# 标题\n\n正文\n"


def _read(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


class TranslatorTestCase(unittest.TestCase):

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.posts_dir = self._tmp.name
        self.config = RunConfig(posts_dir=self.posts_dir, target_langs=("en", "ja", "ko"), verbose=False)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _path(self, filename: str) -> str:
        return os.path.join(self.posts_dir, filename)

    def _document(self, filename: str) -> SourceDocument:
        path = write_post(self.posts_dir, filename, SOURCE)
        return SourceDocument(path, parse_filename(path))


class InvokeTests(TranslatorTestCase):

    def test_invoke_single_writes_translation(self) -> None:
        engine = FakeEngine()

        outcome = invoke_single(self._document("post-a.zh-cn.md"), "en", self.config, engine)

        self.assertIs(outcome.status, Status.SUCCESS)
        self.assertEqual(_read(self._path("post-a.en.md")), f"[en] {SOURCE}")

    def test_invoke_single_rechecks_existing_translation(self) -> None:
        document = self._document("post-a.zh-cn.md")
        write_post(self.posts_dir, "post-a.en.md", "already here")
        engine = FakeEngine()

        outcome = invoke_single(document, "en", self.config, engine)

        self.assertIs(outcome.status, Status.ALREADY_EXISTS)
        self.assertEqual(engine.calls, [])
        self.assertEqual(_read(self._path("post-a.en.md")), "already here")

    def test_invoke_single_failure_writes_nothing(self) -> None:
        outcome = invoke_single(self._document("post-a.zh-cn.md"), "en", self.config,
                                FakeEngine(failing={"en"}))

        self.assertIs(outcome.status, Status.FAILURE)
        self.assertIn("forced failure", outcome.reason)
        self.assertFalse(os.path.exists(self._path("post-a.en.md")))

    def test_invoke_multi_combines_sections_in_order(self) -> None:
        engine = FakeEngine()

        outcome = invoke_multi(self._document("post-c.zh-cn en ja.md"), ("en", "ja"), self.config, engine)

        self.assertIs(outcome.status, Status.SUCCESS)
        self.assertEqual(engine.langs, ["en", "ja"])
        expected = (SOURCE
                    + f"\n\n<!-- TRANSLATION: en -->\n\n[en] {SOURCE}"
                    + f"\n\n<!-- TRANSLATION: ja -->\n\n[ja] {SOURCE}")
        self.assertEqual(_read(self._path("post-c.en ja.md")), expected)

    def test_invoke_multi_is_all_or_nothing(self) -> None:
        engine = FakeEngine(failing={"ja"})

        outcome = invoke_multi(self._document("post-c.zh-cn en ja.md"), ("en", "ja"), self.config, engine)

        self.assertIs(outcome.status, Status.FAILURE)
        self.assertEqual(engine.langs, ["en", "ja"])
        self.assertFalse(os.path.exists(self._path("post-c.en ja.md")))
        self.assertEqual(sorted(os.listdir(self.posts_dir)), ["post-c.zh-cn en ja.md"])

    def test_invoke_multi_skips_existing_combined_file(self) -> None:
        document = self._document("post-c.zh-cn en ja.md")
        write_post(self.posts_dir, "post-c.en ja.md", "combined")
        engine = FakeEngine()

        outcome = invoke_multi(document, ("en", "ja"), self.config, engine)

        self.assertIs(outcome.status, Status.ALREADY_EXISTS)
        self.assertEqual(engine.calls, [])

    def test_combine_translations_without_sections(self) -> None:
        self.assertEqual(combine_translations(b"src", []), b"src")


class ProcessSourceFileTests(TranslatorTestCase):

    def test_fresh_post_gets_every_language(self) -> None:
        engine = FakeEngine()

        counts = process_source_file(self._document("post-a.zh-cn.md"), self.config, engine)

        self.assertEqual((counts.translated, counts.skipped, counts.errors), (3, 0, 0))
        self.assertEqual(engine.langs, ["en", "ja", "ko"])
        for lang in ("en", "ja", "ko"):
            self.assertTrue(os.path.getsize(self._path(f"post-a.{lang}.md")) > 0)
        self.assertIs(counts.status, FileStatus.SUCCESS)

    def test_existing_translation_is_skipped(self) -> None:
        document = self._document("post-a.zh-cn.md")
        write_post(self.posts_dir, "post-a.en.md", "hello")
        engine = FakeEngine()

        counts = process_source_file(document, self.config, engine)

        self.assertEqual((counts.translated, counts.skipped, counts.errors), (2, 1, 0))
        self.assertEqual(engine.langs, ["ja", "ko"])

    def test_empty_translation_is_redone(self) -> None:
        document = self._document("post-a.zh-cn.md")
        write_post(self.posts_dir, "post-a.en.md", "")
        engine = FakeEngine()

        counts = process_source_file(document, self.config, engine)

        self.assertEqual((counts.translated, counts.skipped, counts.errors), (3, 0, 0))
        self.assertEqual(_read(self._path("post-a.en.md")), f"[en] {SOURCE}")

    def test_all_failures_mark_the_file(self) -> None:
        counts = process_source_file(self._document("post-a.zh-cn.md"), self.config,
                                     FakeEngine(failing={"en", "ja", "ko"}))

        self.assertEqual((counts.translated, counts.skipped, counts.errors), (0, 0, 3))
        self.assertIs(counts.status, FileStatus.PARTIAL_ERROR)

    def test_combined_failure_counts_once(self) -> None:
        counts = process_source_file(self._document("post-c.zh-cn en ja.md"), self.config,
                                     FakeEngine(failing={"en"}))

        self.assertEqual((counts.translated, counts.skipped, counts.errors), (0, 0, 1))

    def test_fully_translated_post_makes_no_calls(self) -> None:
        document = self._document("post-a.zh-cn.md")
        write_post(self.posts_dir, "post-a.en ja ko.md", "combined")
        engine = FakeEngine()

        counts = process_source_file(document, self.config, engine)

        self.assertEqual(engine.calls, [])
        self.assertEqual((counts.translated, counts.skipped, counts.errors), (0, 3, 0))
        self.assertIs(counts.status, FileStatus.SKIPPED)


class TranslatePostsTests(TranslatorTestCase):

    def test_second_run_has_nothing_to_do(self) -> None:
        write_post(self.posts_dir, "post-a.zh-cn.md", SOURCE)
        write_post(self.posts_dir, "post-c.zh-cn en ja.md", SOURCE)

        first = translate_posts(self.config, FakeEngine())
        engine = FakeEngine()
        second = translate_posts(self.config, engine)

        self.assertEqual(first.total_translated, 4)
        self.assertEqual(first.files_with_new_translations, 2)
        self.assertEqual(first.exit_code, 0)
        self.assertEqual(engine.calls, [])
        self.assertEqual(second.total_translated, 0)
        self.assertEqual(second.files_skipped, 2)
        self.assertEqual(second.exit_code, 0)

    def test_file_with_only_errors_fails_the_run(self) -> None:
        write_post(self.posts_dir, "post-a.zh-cn.md", SOURCE)
        write_post(self.posts_dir, "post-b.zh-cn.md", SOURCE)
        write_post(self.posts_dir, "post-b.en.md", "hello")
        write_post(self.posts_dir, "post-b.ja.md", "hello")

        report = translate_posts(self.config, FakeEngine(failing={"ko"}))

        self.assertEqual(report.files_processed, 2)
        self.assertEqual(report.files_with_new_translations, 1)
        self.assertEqual(report.files_with_errors, 1)
        self.assertEqual((report.total_translated, report.total_skipped, report.total_errors), (2, 2, 2))
        self.assertEqual(report.exit_code, 1)

    def test_non_utf8_post_does_not_stop_the_run(self) -> None:
        with open(self._path("a.zh-cn.md"), "wb") as f:
            f.write(b"caf\xe9\n")
        write_post(self.posts_dir, "b.zh-cn.md", SOURCE)
        write_post(self.posts_dir, "c.zh-cn en ja.md", SOURCE)
        with open(self._path("d.zh-cn en ja.md"), "wb") as f:
            f.write(b"caf\xe9\n")
        engine = CopyEngine()

        report = translate_posts(RunConfig(posts_dir=self.posts_dir, target_langs=("en",), verbose=False),
                                 engine)

        self.assertEqual(report.files_processed, 4)
        self.assertEqual(report.total_errors, 0)
        with open(self._path("a.en.md"), "rb") as f:
            self.assertEqual(f.read(), b"caf\xe9\n")
        self.assertEqual(_read(self._path("b.en.md")), SOURCE)
        with open(self._path("d.en ja.md"), "rb") as f:
            self.assertEqual(f.read(), b"caf\xe9\n" + b"\n\n<!-- TRANSLATION: en -->\n\ncaf\xe9\n"
                             + b"\n\n<!-- TRANSLATION: ja -->\n\ncaf\xe9\n")

    def test_empty_corpus_succeeds(self) -> None:
        with self.assertLogs("post_translator", level="WARNING"):
            report = translate_posts(self.config, FakeEngine())

        self.assertEqual(report.files_processed, 0)
        self.assertEqual(report.exit_code, 0)

    def test_missing_posts_dir_aborts_before_translating(self) -> None:
        config = RunConfig(posts_dir=self._path("missing"), verbose=False)
        engine = FakeEngine()

        with self.assertRaises(ConfigurationError):
            translate_posts(config, engine)
        self.assertEqual(engine.calls, [])


class MainTests(TranslatorTestCase):

    def tearDown(self) -> None:
        run_logger = logging.getLogger("post_translator")
        for handler in run_logger.handlers:
            handler.close()
        run_logger.handlers = []
        super().tearDown()

    def test_main_returns_failure_on_configuration_error(self) -> None:
        log_file = self._path("build.log")
        with patch.dict(os.environ, {}, clear=True):
            code = main(["--posts-dir", self._path("missing"), "--log-file", log_file,
                         "--env-file", self._path("none.env"), "--quiet"])

        self.assertEqual(code, 1)
        self.assertIn("does not exist", _read(log_file))

    def test_main_runs_with_cli_arguments(self) -> None:
        write_post(self.posts_dir, "post-a.zh-cn.md", SOURCE)
        engine = FakeEngine()

        with patch.dict(os.environ, {}, clear=True), \
                patch("translator.build_engine", return_value=engine):
            code = main(["--posts-dir", self.posts_dir, "--target-langs", "en ja",
                         "--log-file", self._path("build.log"),
                         "--env-file", self._path("none.env"), "--quiet"])

        self.assertEqual(code, 0)
        self.assertEqual(engine.langs, ["en", "ja"])

    def test_main_reports_unwritable_build_log(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            code = main(["--posts-dir", self.posts_dir, "--log-file", self._path("no/such/dir/build.log"),
                         "--env-file", self._path("none.env"), "--quiet"])

        self.assertEqual(code, 1)

    def test_main_reads_settings_from_env_file(self) -> None:
        write_post(self.posts_dir, "post-a.zh-cn.md", SOURCE)
        env_file = write_post(self.posts_dir, "settings.env", "TARGET_LANGS=ko\nOPENAI_API_KEY=sk-test\n")
        engine = FakeEngine()

        with patch.dict(os.environ, {}, clear=True), \
                patch("translator.build_engine", return_value=engine):
            code = main(["--posts-dir", self.posts_dir, "--log-file", self._path("build.log"),
                         "--env-file", env_file, "--quiet"])
            self.assertEqual(os.environ.get("OPENAI_API_KEY"), "sk-test")

        self.assertEqual(code, 0)
        self.assertEqual(engine.langs, ["ko"])


if __name__ == "__main__":
    unittest.main()
