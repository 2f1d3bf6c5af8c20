"""
ssg-macro Package.

A source-to-source generator for Swift code implementing two macros:

* ``@fluentSetterMacro`` on a ``struct`` / ``class`` appends one chaining setter
  per stored field.
* ``#WeakSelfClosure { ... }`` rewrites a closure to capture ``self`` weakly
  behind a ``guard let self else { return }``.

Usage
-----

Simple String Expansion
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import ssg_macro
    code = '''
    @fluentSetterMacro
    class Box {
        var width = 1.0
    }
    '''
    print(ssg_macro.expand(code))

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from ssg_macro import ExpansionEngine, RuntimeConfig

    engine = ExpansionEngine(RuntimeConfig(indent_width=2, strict_mode=True))
    res = engine.run(code)

    if res.success:
        print(res.code)
    else:
        print(f"Errors: {res.errors}")
"""

from typing import Optional

from ssg_macro.config import RuntimeConfig
from ssg_macro.core.engine import ExpansionEngine
from ssg_macro.core.expansion_result import Diagnostic, ExpansionResult
from ssg_macro.core.registry import MacroRegistry, default_registry

__version__ = "0.1.0"


def expand(code: str, strict: bool = False, config: Optional[RuntimeConfig] = None) -> str:
  """
  Expands every macro site of a Swift source string.

  This is a convenience wrapper around `ExpansionEngine`. For files and
  directories use the `ssg-macro` CLI or the engine directly.

  Args:
      code (str): The Swift source to expand.
      strict (bool): Abort on the first failing site instead of skipping it.
      config (RuntimeConfig, optional): Settings; defaults are used if None.

  Returns:
      str: The expanded source code.

  Raises:
      ValueError: If any site failed to expand.
  """
  config = (config or RuntimeConfig()).model_copy(update={"strict_mode": strict})
  engine = ExpansionEngine(config=config)
  result = engine.run(code)

  if not result.success:
    error_msg = "\n".join(result.errors)
    raise ValueError(f"Macro expansion failed:\n{error_msg}")

  return result.code


__all__ = [
  "Diagnostic",
  "ExpansionEngine",
  "ExpansionResult",
  "MacroRegistry",
  "RuntimeConfig",
  "default_registry",
  "expand",
  "__version__",
]
