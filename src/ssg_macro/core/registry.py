"""
Macro Registry and Expansion Context.

Maps macro names to their implementations. Member macros are attached to a
declaration with `@name`, expression macros are written `#name` in expression
position. Registries are plain instances: every engine (and every test) builds
its own, so registrations never leak between runs.
"""

import logging
from abc import ABC
from pathlib import Path
from typing import Callable, Dict, List, Optional, Type, TypeVar, Union

from ssg_macro.config import RuntimeConfig
from ssg_macro.core.tracer import TraceLogger
from ssg_macro.enums import MacroRole

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Type["Macro"])


class MacroContext:
  """
  Read-only view of the run that a macro receives with every site.
  """

  def __init__(
    self,
    config: RuntimeConfig,
    tracer: Optional[TraceLogger] = None,
    path: Optional[Path] = None,
    indent_unit: Optional[str] = None,
  ):
    self.config = config
    self.tracer = tracer or TraceLogger()
    self.path = path
    self.indent_unit = indent_unit

  @property
  def indent(self) -> str:
    return self.indent_unit or self.config.indent

  def with_indent(self, unit: str) -> "MacroContext":
    """Same run, but generated code is indented with `unit`."""
    return MacroContext(self.config, self.tracer, self.path, unit)

  def warn(self, message: str) -> None:
    """Reports a non-fatal problem to the log and the trace."""
    logger.warning(message)
    self.tracer.log_warning(message)


class Macro(ABC):
  """Base class of macro implementations; `role` selects how the engine finds sites."""

  role: MacroRole = MacroRole.MEMBER

  def __init__(self, name: str):
    self.name = name

  def __repr__(self) -> str:
    return f"{type(self).__name__}({self.name!r})"


class MacroRegistry:
  """
  Name -> macro instance mapping.
  """

  def __init__(self) -> None:
    self._macros: Dict[str, Macro] = {}

  def register(self, name: str, macro: Optional[Union[Macro, Type[Macro]]] = None) -> Union[Macro, Callable[[M], M]]:
    """
    Registers a macro under `name`.

    Accepts an instance, a class (instantiated with `name`), or can be used as
    a class decorator when `macro` is omitted.
    """
    if macro is None:

      def decorator(cls: M) -> M:
        self.register(name, cls)
        return cls

      return decorator

    instance = macro(name) if isinstance(macro, type) else macro
    if name in self._macros:
      logger.debug("Replacing macro '%s' (%r -> %r)", name, self._macros[name], instance)
    self._macros[name] = instance
    return instance

  def get(self, name: str, role: Optional[MacroRole] = None) -> Optional[Macro]:
    macro = self._macros.get(name)
    if macro is not None and role is not None and macro.role != role:
      return None
    return macro

  def names(self, role: Optional[MacroRole] = None) -> List[str]:
    return [name for name, macro in self._macros.items() if role is None or macro.role == role]

  def clear(self) -> None:
    self._macros.clear()

  def __contains__(self, name: str) -> bool:
    return name in self._macros

  def __len__(self) -> int:
    return len(self._macros)


def default_registry(config: Optional[RuntimeConfig] = None) -> MacroRegistry:
  """
  Builds a fresh registry holding the fluent setter and weak-self macros under
  the names configured in `config`.
  """
  from ssg_macro.core.macros import FluentSetterMacro, WeakSelfClosureMacro

  config = config or RuntimeConfig()
  registry = MacroRegistry()
  registry.register(config.fluent_setter_macro, FluentSetterMacro)
  registry.register(config.weak_self_macro, WeakSelfClosureMacro)
  return registry
