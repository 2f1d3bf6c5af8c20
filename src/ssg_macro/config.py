"""
Runtime Configuration Store.

Holds the macro names the engine recognises and the layout settings of the
generated code. Values come from the `[tool.ssg_macro]` table of the nearest
`pyproject.toml` and may be overridden from the command line.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseModel):
  """
  Configuration container for the expansion engine.
  """

  fluent_setter_macro: str = Field("fluentSetterMacro", description="Attribute name triggering fluent setters.")
  weak_self_macro: str = Field("WeakSelfClosure", description="Freestanding macro name triggering the closure rewrite.")
  indent_width: int = Field(4, ge=1, description="Spaces per indentation level in generated code.")
  strict_mode: bool = Field(False, description="If True, the first failing site aborts the whole file.")
  max_passes: int = Field(4, ge=1, description="Expansion passes used to reach nested marker sites.")
  file_extensions: List[str] = Field(default_factory=lambda: [".swift"], description="Suffixes expanded in directories.")

  @field_validator("fluent_setter_macro", "weak_self_macro")
  @classmethod
  def validate_macro_name(cls, v: str) -> str:
    """
    Strips a leading `@` / `#` sigil so both spellings are accepted.

    Raises:
        ValueError: If the name is empty or not an identifier.
    """
    v_clean = v.strip().lstrip("@#")
    if not v_clean.isidentifier():
      raise ValueError(f"Invalid macro name: '{v}'")
    return v_clean

  @field_validator("file_extensions")
  @classmethod
  def validate_extensions(cls, v: List[str]) -> List[str]:
    return [ext if ext.startswith(".") else f".{ext}" for ext in v]

  @property
  def indent(self) -> str:
    """One indentation unit."""
    return " " * self.indent_width

  @classmethod
  def load(
    cls,
    strict_mode: Optional[bool] = None,
    indent_width: Optional[int] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        strict_mode (Optional[bool]): Override for strict mode setting.
        indent_width (Optional[int]): Override for the indentation width.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, toml_dir = _load_toml_settings(start_dir)
    if toml_dir:
      logger.debug("Loaded [tool.ssg_macro] from %s", toml_dir)

    settings: Dict[str, Any] = {key: value for key, value in toml_config.items() if key in cls.model_fields}
    if strict_mode is not None:
      settings["strict_mode"] = strict_mode
    if indent_width is not None:
      settings["indent_width"] = indent_width
    return cls(**settings)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Recursively searches parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory definition was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable %s: %s", toml_path, e)
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get("ssg_macro", {}), parent

  return {}, None
