"""CLI command modules.

This package contains:
- setup: Help, discover and connect commands
- control: Light commands (list, identify, toggle, colour, brightness)
- helpers: Session opening, light selection and error reporting
"""
