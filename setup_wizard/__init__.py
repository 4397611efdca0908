"""Claude Code Enterprise Setup Wizard - submission relay service"""

__version__ = "1.0.0"
