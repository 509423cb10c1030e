"""
Configuration for Blog Post Translator

Holds the default settings and builds the immutable run configuration
from the environment once, at process start
"""

import os
import tempfile
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple
from dotenv import load_dotenv

LOGGING_CONFIG = {
    'level': 'INFO',
    'format': '%(asctime)s %(levelname)s: %(message)s',
    'datefmt': '%H:%M:%S',
    'log_file_prefix': 'translate-posts',
}

TRANSLATION_CONFIG = {
    'source_lang': 'zh-cn',
    'target_langs': ('en', 'ja', 'ko'),
    'posts_dir': os.path.join('content', 'posts'),
    'extension': '.md',
    'section_marker': '<!-- TRANSLATION: {lang} -->',
    'engine': 'cli',
    'verbose': True,
}

CLI_CONFIG = {
    'package': 'ai-markdown-translator',
    'runner': 'npx',
    'installer': ['npm', 'install', '-g'],
    'model': 'gpt-3.5-turbo',
    'api_key_env': 'OPENAI_API_KEY',
}

API_CONFIG = {
    'model': 'claude-sonnet-4-5',
    'max_tokens': 8192,
    'temperature': 0.2,
    'api_key_env': 'ANTHROPIC_API_KEY',
}

ENGINES = ('cli', 'anthropic')


class ConfigurationError(RuntimeError):
    """Fatal setup problem; aborts the run before any post is touched"""


def parse_lang_list(value: Optional[str]) -> Tuple[str, ...]:
    """Splits a space separated language list, dropping repeats"""
    langs = []
    for lang in (value or '').split():
        if lang not in langs:
            langs.append(lang)
    return tuple(langs)


def load_env_file(path: str) -> bool:
    """Loads KEY=value pairs from a .env file; variables already set win"""
    if not os.path.isfile(path):
        return False
    return load_dotenv(path, override=False)


def default_log_file() -> str:
    return os.path.join(tempfile.gettempdir(),
                        f"{LOGGING_CONFIG['log_file_prefix']}-{os.getpid()}.log")


@dataclass(frozen=True)
class RunConfig:
    source_lang: str = TRANSLATION_CONFIG['source_lang']
    target_langs: Tuple[str, ...] = TRANSLATION_CONFIG['target_langs']
    posts_dir: str = TRANSLATION_CONFIG['posts_dir']
    api_key: str = ''
    model: str = ''
    engine: str = TRANSLATION_CONFIG['engine']
    verbose: bool = TRANSLATION_CONFIG['verbose']
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.engine not in ENGINES:
            raise ConfigurationError(
                f"Unknown translation engine '{self.engine}' (expected one of: {', '.join(ENGINES)})")
        if not self.source_lang:
            raise ConfigurationError("Source language must not be empty")

    @property
    def effective_targets(self) -> Tuple[str, ...]:
        """Configured target languages in order, without the source language"""
        return tuple(lang for lang in self.target_langs if lang != self.source_lang)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'RunConfig':
        """
        Builds the configuration from SOURCE_LANG, TARGET_LANGS, POSTS_DIR,
        TRANSLATION_ENGINE and the engine's credential/model variables.
        Keyword overrides that are not None win over the environment.
        """
        env = os.environ if environ is None else environ
        overrides = {key: value for key, value in overrides.items() if value is not None}

        engine = overrides.pop('engine', None) or env.get('TRANSLATION_ENGINE') or TRANSLATION_CONFIG['engine']
        if engine == 'anthropic':
            api_key = env.get(API_CONFIG['api_key_env'], '')
            model = env.get('ANTHROPIC_MODEL') or API_CONFIG['model']
        else:
            api_key = env.get(CLI_CONFIG['api_key_env'], '')
            model = env.get('OPENAI_MODEL') or CLI_CONFIG['model']

        target_langs = overrides.pop('target_langs', None)
        if isinstance(target_langs, str):
            target_langs = parse_lang_list(target_langs)
        if not target_langs:
            # Empty or blank TARGET_LANGS falls back to the defaults
            target_langs = parse_lang_list(env.get('TARGET_LANGS')) or TRANSLATION_CONFIG['target_langs']

        config = cls(
            source_lang=env.get('SOURCE_LANG') or TRANSLATION_CONFIG['source_lang'],
            target_langs=tuple(target_langs),
            posts_dir=env.get('POSTS_DIR') or TRANSLATION_CONFIG['posts_dir'],
            api_key=api_key,
            model=model,
            engine=engine,
        )
        return replace(config, **overrides) if overrides else config
