"""OhMyBug — scan, fix, verify and roll back code quality issues."""

__version__ = "1.0.0"
