"""Configuration package for the interview session engine."""
from .registry import EVAL_KEY, QUESTION_KEY, SUMMARY_KEY, bind_model, get_model, unbind_model
from .routing import AppConfig, LlmRoute, load_config, resolve_registry
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_registry",
    "QUESTION_KEY",
    "EVAL_KEY",
    "SUMMARY_KEY",
    "bind_model",
    "get_model",
    "unbind_model",
    "Settings",
    "settings",
]
