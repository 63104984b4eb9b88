"""
================================================================================
UI Resilience
================================================================================

Resilience layer for browser automation: waits, self-recovering elements,
frame scanning, page object cache and dialog lifecycle.

Packages:
    - common: Configuration and logging
    - framework: Automation core and Playwright bindings

Author: Automation Team
License: MIT
================================================================================
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
