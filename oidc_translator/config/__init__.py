"""Translator configuration: schema and loader."""

from oidc_translator.config.loader import load_config
from oidc_translator.config.schema import AuthType, TranslatorConfig

__all__ = ["AuthType", "TranslatorConfig", "load_config"]
