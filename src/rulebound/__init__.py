"""rulebound -- check change plans against enforceable engineering rules."""

__version__ = "0.1.0"
