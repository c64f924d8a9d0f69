"""
Configuration management for karaoke-remix

This module handles loading, validation, and management of application settings
from multiple sources including YAML files and environment variables.

The configuration is organized into logical sections using dataclasses:
- Server settings (bind address, route paths)
- Lyrics provider settings (enabled providers, endpoints, credentials)
- Completion backend settings (endpoints, credentials, model allow-list)
- Song catalog settings (search endpoint, companion link)
- Logging and network settings

All sensitive data (API keys, tokens) should be provided through environment
variables or a .env file, while non-sensitive settings can be stored in YAML.
A missing credential is never a startup error: it surfaces as a
ConfigurationError on the request that needs it.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, asdict
from dotenv import load_dotenv

from ..lyrics.models import LyricsSource

# Load environment variables from .env file if present
load_dotenv()


# Provider identifiers understood by the lyrics layer
PROVIDER_IDS = ["lyrics_ovh", "flylyrics", "audd", "genius"]

DEFAULT_MODEL = "tngtech/deepseek-r1t2-chimera:free"

ALLOWED_MODELS = [
    "tngtech/deepseek-r1t2-chimera:free",
    "meta-llama/llama-3.2-3b-instruct:free",
    "google/gemini-2.0-flash-exp:free",
    "openai/gpt-4o",
]


@dataclass
class ServerConfig:
    """
    HTTP server settings

    The rewrite endpoint and its liveness check share one route path.
    """
    host: str = "127.0.0.1"
    port: int = 3000
    lyrics_path: str = "/api/lyrics"
    search_path: str = "/api/search"


@dataclass
class LyricsConfig:
    """
    Lyrics provider configuration

    enabled_providers is the capability set for this deployment. A request
    naming a provider outside it is answered as "lyrics not found".
    """
    default_provider: str = "lyrics_ovh"
    enabled_providers: list = field(default_factory=lambda: list(PROVIDER_IDS))
    lyrics_ovh_url: str = "https://api.lyrics.ovh"
    flylyrics_url: str = "https://flylyrics.vercel.app/api/lyrics"
    audd_url: str = "https://api.audd.io"
    genius_api_url: str = "https://api.genius.com"
    genius_web_url: str = "https://genius.com"
    genius_access_token: str = ""
    audd_api_token: str = ""


@dataclass
class CompletionConfig:
    """
    Completion backend configuration

    Model identifiers in the openai/ namespace go to the first-party
    endpoint, everything else goes to the OpenRouter aggregator.
    """
    openai_url: str = "https://api.openai.com/v1/chat/completions"
    openrouter_url: str = "https://openrouter.ai/api/v1/chat/completions"
    openai_api_key: str = ""
    openrouter_api_key: str = ""
    allowed_models: list = field(default_factory=lambda: list(ALLOWED_MODELS))
    default_model: str = DEFAULT_MODEL
    referer: str = "http://localhost:3000"
    app_title: str = "Karaoke AI Lyrics"


@dataclass
class CatalogConfig:
    """
    Song catalog (iTunes Search API) configuration
    """
    search_url: str = "https://itunes.apple.com/search"
    entity: str = "song"
    limit: int = 5
    include_link: bool = True


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class NetworkConfig:
    """
    Outbound HTTP settings

    No timeout or retry knobs: upstream calls get aiohttp's defaults and a
    single attempt.
    """
    user_agent: str = "karaoke-remix/0.1"


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from a YAML file, then overrides them with environment
    variables, and provides a unified interface for accessing configuration
    throughout the application.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".karaoke-remix"

        # Initialize all configuration objects with default values
        self.server = ServerConfig()
        self.lyrics = LyricsConfig()
        self.completion = CompletionConfig()
        self.catalog = CatalogConfig()
        self.logging = LoggingConfig()
        self.network = NetworkConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()

    def _sections(self) -> Dict[str, Any]:
        return {
            'server': self.server,
            'lyrics': self.lyrics,
            'completion': self.completion,
            'catalog': self.catalog,
            'logging': self.logging,
            'network': self.network,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only attributes that exist on the section dataclass are updated;
        unknown sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        if not isinstance(config_data, dict):
            return

        config_mapping = self._sections()
        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'GENIUS_ACCESS_TOKEN': lambda v: setattr(self.lyrics, 'genius_access_token', v),
            'AUDD_API_TOKEN': lambda v: setattr(self.lyrics, 'audd_api_token', v),
            'OPENAI_API_KEY': lambda v: setattr(self.completion, 'openai_api_key', v),
            'OPENROUTER_API_KEY': lambda v: setattr(self.completion, 'openrouter_api_key', v),
            'KARAOKE_REMIX_DEFAULT_MODEL': lambda v: setattr(self.completion, 'default_model', v),
            'KARAOKE_REMIX_HOST': lambda v: setattr(self.server, 'host', v),
            'KARAOKE_REMIX_PORT': lambda v: setattr(self.server, 'port', int(v)),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def get_config_directory(self) -> Path:
        """
        Get the expanded config directory path

        Returns:
            Path object for the configuration directory
        """
        return self.config_dir.expanduser()

    def credential_status(self) -> Dict[str, bool]:
        """
        Report which credentials are present, without revealing them

        Returns:
            Mapping of environment variable name to presence flag
        """
        return {
            'GENIUS_ACCESS_TOKEN': bool(self.lyrics.genius_access_token),
            'AUDD_API_TOKEN': bool(self.lyrics.audd_api_token),
            'OPENAI_API_KEY': bool(self.completion.openai_api_key),
            'OPENROUTER_API_KEY': bool(self.completion.openrouter_api_key),
        }

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        """
        Convert all sections to plain dictionaries

        Args:
            redact: Blank out credentials (default True)

        Returns:
            Dictionary keyed by section name
        """
        data = {name: asdict(section) for name, section in self._sections().items()}
        if redact:
            data['lyrics']['genius_access_token'] = ""
            data['lyrics']['audd_api_token'] = ""
            data['completion']['openai_api_key'] = ""
            data['completion']['openrouter_api_key'] = ""
        return data

    def save_config(self, path: Optional[str] = None) -> None:
        """
        Save current configuration to file, excluding credentials

        Args:
            path: Custom path to save config, defaults to user config directory
        """
        target = Path(path) if path else self.get_config_directory() / "config.yaml"
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(redact=True), f, default_flow_style=False, indent=2)

    def validate(self) -> List[str]:
        """
        Validate current configuration

        Missing credentials are deliberately not reported here.

        Returns:
            List of problems, empty when the configuration is usable
        """
        errors = []

        unknown = [p for p in self.lyrics.enabled_providers if LyricsSource.from_request(p) is None]
        if unknown:
            errors.append(f"Unknown lyrics providers enabled: {', '.join(unknown)}")

        if LyricsSource.from_request(self.lyrics.default_provider) is None:
            errors.append(f"Invalid default lyrics provider: {self.lyrics.default_provider}")

        if not self.completion.allowed_models:
            errors.append("Model allow-list is empty")
        elif self.completion.default_model not in self.completion.allowed_models:
            errors.append(f"Default model is not in the allow-list: {self.completion.default_model}")

        if not isinstance(self.server.port, int) or self.server.port <= 0:
            errors.append(f"Invalid server port: {self.server.port}")

        return errors

    def __str__(self) -> str:
        sections = [
            f"Server: {self.server.host}:{self.server.port}",
            f"Provider: {self.lyrics.default_provider}",
            f"Model: {self.completion.default_model}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance for the CLI
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance, creating it on first access

    The server pipeline is handed its Settings explicitly; this accessor
    exists for the command-line entry points.

    Returns:
        The global Settings instance
    """
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings
