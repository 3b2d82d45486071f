"""Built-in workspace plugins."""
