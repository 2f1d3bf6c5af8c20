"""
Weak-self closure rewrite.
"""
