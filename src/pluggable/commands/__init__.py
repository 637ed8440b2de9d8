"""Built-in sub-command groups of the ``pluggable`` CLI."""
