"""hse-field-reports: offline report lifecycle and local persistence core.

Import-time side effects are limited to module definitions; configuration
loading and logging setup happen in the CLI entrypoint.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
