"""
Fluent setter pipeline: Declaration Scanner -> Type/Value Classifier -> Fluent Method Synthesizer.
"""
