"""
Translation engines for Blog Post Translator

Wraps the collaborators that actually translate a Markdown file:
the ai-markdown-translator npm tool (default) or the Claude API.
Both write the translated Markdown to an output path and raise
TranslationError when that did not happen.
"""
import logging
import shutil
import subprocess
from typing import List, Optional
from anthropic import Anthropic, APIError
from config import API_CONFIG, CLI_CONFIG, ConfigurationError, RunConfig
from utils import is_valid_artifact, read_text, truncate_str

logger = logging.getLogger('post_translator')


class TranslationError(RuntimeError):
    """The engine could not produce a translation for one file/language"""


class TranslationEngine:
    name = "engine"
    model = ""

    def ensure_installed(self) -> None:
        """Raises ConfigurationError when the engine cannot run at all"""

    def translate(self, input_path: str, output_path: str, target_lang: str) -> None:
        raise NotImplementedError


class MarkdownTranslatorCLI(TranslationEngine):
    """Runs `npx ai-markdown-translator` once per file and language"""
    name = "cli"

    def __init__(self, api_key: str = "", model: Optional[str] = None):
        self.api_key = api_key
        self.model = model or CLI_CONFIG['model']
        self.package = CLI_CONFIG['package']

    def build_command(self, input_path: str, output_path: str, target_lang: str) -> List[str]:
        cmd = [CLI_CONFIG['runner'], self.package,
               '--input', input_path,
               '--output', output_path,
               '-l', target_lang]
        # Credential and model are forwarded only together
        if self.api_key:
            cmd += ['--api-key', self.api_key, '--model', self.model]
        return cmd

    def ensure_installed(self) -> None:
        if not shutil.which('npm'):
            raise ConfigurationError("npm is not installed. Please install Node.js and npm first.")

        if shutil.which(self.package):
            return

        logger.info(f"Installing {self.package} globally...")
        install_cmd = CLI_CONFIG['installer'] + [self.package]
        result = subprocess.run(install_cmd, capture_output=True, text=True)
        if result.returncode != 0 or not shutil.which(self.package):
            logger.error(f"Failed to install {self.package}: {truncate_str(result.stderr.strip(), 200)}")
            logger.info(f"Try installing manually: {' '.join(install_cmd)}")
            raise ConfigurationError(f"Failed to install {self.package}")

    def translate(self, input_path: str, output_path: str, target_lang: str) -> None:
        cmd = self.build_command(input_path, output_path, target_lang)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise TranslationError(f"Could not start {self.package}: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise TranslationError(
                f"{self.package} exited with status {result.returncode}: {truncate_str(detail, 200)}")
        if not is_valid_artifact(output_path):
            raise TranslationError(f"{self.package} produced no output for {target_lang}")


class AnthropicTranslator(TranslationEngine):
    """Translates a whole Markdown file in one Claude request"""
    name = "anthropic"

    def __init__(self, api_key: str = "", model: Optional[str] = None):
        self.api_key = api_key
        self.model = model or API_CONFIG['model']
        self._client = None

    @property
    def client(self) -> Anthropic:
        if self._client is None:
            self._client = Anthropic(api_key=self.api_key)
        return self._client

    def ensure_installed(self) -> None:
        if not self.api_key:
            raise ConfigurationError(
                f"{API_CONFIG['api_key_env']} is required for the anthropic engine")

    def system_text(self, target_lang: str) -> str:
        return (f"<task>Translate the Markdown blog post provided by the user into the language "
                f"with code '{target_lang}'.</task>\n"
                "<output-format>Preserve the Markdown structure exactly: front matter keys, headings, "
                "lists, links, images, HTML comments and code blocks. Do not translate code, URLs or "
                "front matter keys. Output ONLY the translated Markdown, without any comment "
                "about the translation.</output-format>")

    def translate(self, input_path: str, output_path: str, target_lang: str) -> None:
        try:
            content = read_text(input_path)
        except (OSError, UnicodeDecodeError) as e:
            raise TranslationError(f"Cannot read {input_path}: {e}") from e

        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=API_CONFIG['max_tokens'],
                temperature=API_CONFIG['temperature'],
                system=self.system_text(target_lang),
                messages=[{"role": "user", "content": content}],
            )
        except APIError as e:
            raise TranslationError(f"API Error: {e}") from e

        answer = process_response(message)
        if not answer:
            raise TranslationError("Empty Answer")
        logger.info(f"Received {len(answer)} characters for {target_lang}: {truncate_log_message(answer)}")

        with open(output_path, mode='w', encoding='utf-8') as f:
            f.write(answer)


def process_response(message) -> str:
    """Joins the text blocks of a Claude reply"""
    if not message.content:
        return ""
    text = "".join(block.text for block in message.content if getattr(block, "type", "") == "text")
    return text.strip('\n') + '\n' if text.strip() else ""


def truncate_log_message(message: str, max_length: int = 200) -> str:
    """Truncates log messages to reasonable length"""
    if len(message) <= max_length:
        return message
    return message[:max_length] + "..."


def build_engine(config: RunConfig) -> TranslationEngine:
    if config.engine == "anthropic":
        return AnthropicTranslator(config.api_key, config.model)
    return MarkdownTranslatorCLI(config.api_key, config.model)
