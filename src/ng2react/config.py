"""
Transpiler configuration.
"""

import json
import os
import re
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .utils.file_utils import read_file
from .utils.logger import get_logger

logger = get_logger(__name__)

# camelCase option names accepted in config files
OPTION_ALIASES = {
    "sourceDir": "source_dir",
    "outputDir": "output_dir",
    "useTypeScript": "use_typescript",
    "generateTests": "generate_tests",
    "preserveStructure": "preserve_structure",
    "reactVersion": "react_version",
    "dryRun": "dry_run",
    "maxWorkers": "max_workers",
}

_VERSION_RE = re.compile(r"^\^?~?(\d+)(\.\d+)*(\.x)?$")


@dataclass
class TranspilerConfig:
    source_dir: str = ""
    output_dir: str = ""
    use_typescript: bool = True
    generate_tests: bool = False
    preserve_structure: bool = False
    react_version: str = "18"
    dry_run: bool = False
    max_workers: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranspilerConfig":
        """
        Build a configuration from camelCase or snake_case option names.

        Raises:
            ConfigurationError: On an unknown option name
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration option '{key}'")
            values[name] = value
        return cls(**values)

    @classmethod
    def from_file(cls, path: str) -> "TranspilerConfig":
        text = read_file(path)
        if text is None:
            raise ConfigurationError(f"Could not read configuration file {path}")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Configuration file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
        return cls.from_dict(data)

    def merged(self, overrides: Dict[str, Any]) -> "TranspilerConfig":
        """Copy of this configuration with the non-None ``overrides`` applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TranspilerConfig.from_dict(values)

    @property
    def react_major(self) -> int:
        match = _VERSION_RE.match(str(self.react_version).strip())
        if match is None:
            raise ConfigurationError(f"Unparsable reactVersion '{self.react_version}'")
        return int(match.group(1))

    def validate(self, require_source: bool = True) -> None:
        """
        Check the configuration before a run.

        Args:
            require_source: Whether ``source_dir`` must exist (False for in-memory inputs)

        Raises:
            ConfigurationError: On a nonexistent source directory, a missing
                output directory when writing, or an unparsable React version
        """
        if require_source and not os.path.isdir(self.source_dir or ""):
            raise ConfigurationError(f"Source directory '{self.source_dir}' does not exist")
        if not self.dry_run and not self.output_dir:
            raise ConfigurationError("An output directory is required unless dryRun is set")
        if self.max_workers is not None and (not isinstance(self.max_workers, int) or self.max_workers < 1):
            raise ConfigurationError(f"maxWorkers must be a positive integer, got {self.max_workers!r}")
        for name in ("use_typescript", "generate_tests", "preserve_structure", "dry_run"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"Option '{name}' must be a boolean")
        logger.debug(f"Configuration validated (React {self.react_major}): {self}")
