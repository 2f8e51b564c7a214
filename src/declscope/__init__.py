"""declscope - caret position to declaration resolver for call-graph tooling."""

__version__ = "0.1.0"
