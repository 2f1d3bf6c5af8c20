"""
Core Package.

Contains the expansion logic:
- Swift subset front-end (tokenizer, nodes, parser)
- Fluent setter pipeline (scanner, classifier, synthesizer)
- Closure rewriter
- Macro registry and expansion engine
"""
