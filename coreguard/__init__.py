"""CoreGuard - size-based integrity verification of release installations."""

__version__ = "0.1.0"
