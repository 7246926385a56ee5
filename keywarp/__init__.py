"""Modal, keyboard-driven control of the mouse pointer over a pluggable display platform."""

__version__ = "1.3.5"