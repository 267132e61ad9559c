"""Configuration loading and resolution."""

from doxynav.config.load import load_config
from doxynav.config.model import Config

__all__ = ["Config", "load_config"]
