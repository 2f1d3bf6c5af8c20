"""
Expansion Trace Logger.

This module records the step-by-step execution of the expansion engine:
1. Lifecycle Phases (Tokenizing, Pass N, Site expansion).
2. Macro Matches (Found `@fluentSetterMacro` on `class Foo`).
3. Source Mutations (the text of a site before and after expansion).
4. Warnings and Inspections (fields skipped, sites left untouched).

The output is a structured list of Event Log dictionaries suitable for JSON serialization.
Each engine run owns its own logger.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  MACRO_MATCH = "macro_match"
  SOURCE_MUTATION = "source_mutation"
  WARNING = "warning"
  INSPECTION = "inspection"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records expansion events for a single engine run.
  """

  def __init__(self):
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []  # Stack of phase IDs

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase (e.g., 'Pass 1'). Returns Phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None

    event = TraceEvent(
      id=phase_id,
      type=TraceEventType.PHASE_START,
      timestamp=time.time(),
      description=name,
      parent_id=parent,
      metadata={"detail": description},
    )
    self._events.append(event)
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self):
    """Ends the current active phase."""
    if not self._active_phases:
      return

    phase_id = self._active_phases.pop()
    event = TraceEvent(
      id=str(uuid.uuid4()),
      type=TraceEventType.PHASE_END,
      timestamp=time.time(),
      description="End Phase",
      parent_id=phase_id,
    )
    self._events.append(event)

  def log_match(self, macro: str, target: str, line: int):
    """Logs a macro site being recognised."""
    self._log_simple(
      TraceEventType.MACRO_MATCH,
      f"Matched {macro} on {target}",
      {"macro": macro, "target": target, "line": line},
    )

  def log_mutation(self, site: str, before: str, after: str):
    """Logs a source transformation."""
    self._log_simple(TraceEventType.SOURCE_MUTATION, f"Expanded {site}", {"before": before, "after": after})

  def log_warning(self, message: str):
    self._log_simple(TraceEventType.WARNING, message, {"level": "warning"})

  def log_inspection(self, node_str: str, outcome: str, detail: str = ""):
    """Logs a decision point where no change occurred."""
    self._log_simple(TraceEventType.INSPECTION, f"Inspecting '{node_str}'", {"outcome": outcome, "detail": detail})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]):
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  @property
  def events(self) -> List[TraceEvent]:
    return list(self._events)

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]
