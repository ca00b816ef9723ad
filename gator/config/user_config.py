"""
Per-user CLI state stored as JSON in the home directory
(``~/.gatorconfig.json`` by default).
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, PrivateAttr, ValidationError as PydanticValidationError

from ..utils.exceptions import ConfigurationError, ErrorCode


class UserConfig(BaseModel):
    """Name of the user the CLI acts as."""
    current_user_name: Optional[str] = Field(default=None, description="Logged-in user name")

    model_config = {"extra": "ignore"}

    _path: Optional[Path] = PrivateAttr(default=None)

    @classmethod
    def read(cls, path: Union[str, Path]) -> "UserConfig":
        """Load the config file. A missing file yields an empty config.

        Raises:
            ConfigurationError: If the file exists but cannot be read or parsed
        """
        path = Path(path).expanduser()
        if not path.exists():
            config = cls()
        else:
            try:
                config = cls.model_validate_json(path.read_text(encoding="utf-8") or "{}")
            except (OSError, PydanticValidationError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Could not read user config {path}: {e}",
                    config_key="user_config",
                    error_code=ErrorCode.CONFIG_PARSE_ERROR,
                ) from e

        config._path = path
        return config

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def set_user(self, name: str) -> None:
        """Make ``name`` the current user and persist the change."""
        self.current_user_name = name
        self.write()

    def write(self) -> None:
        if self._path is None:
            raise ConfigurationError(
                "User config has no file path", config_key="user_config",
                error_code=ErrorCode.CONFIG_MISSING,
            )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                f"Could not write user config {self._path}: {e}",
                config_key="user_config",
            ) from e
