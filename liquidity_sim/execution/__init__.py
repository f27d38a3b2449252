"""
Action models and the validator/executor that applies them.

Implements the bridge and execute transfers, gas and surplus accounting, and
the rejection reasons reported for actions that cannot be applied.
"""
