"""prflow: pull-request workflows from the terminal."""

__version__ = "0.3.0"
