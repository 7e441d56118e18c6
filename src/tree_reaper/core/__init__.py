"""Core process-tree termination components."""
