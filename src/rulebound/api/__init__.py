"""HTTP API for rulebound."""
