"""Generate incremental Make rules from a Go package dependency graph."""

__version__ = "0.1.0"
