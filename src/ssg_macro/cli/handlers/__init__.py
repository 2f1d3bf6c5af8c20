from .expand import handle_expand, _expand_single_file, _print_batch_summary
from .fields import handle_fields

__all__ = [
  "_expand_single_file",
  "_print_batch_summary",
  "handle_expand",
  "handle_fields",
]
