"""
No Water Sleep - drowns players who fall asleep underwater.

A plugin for the in-process world engine shipped alongside it:
- DrowningSystem: per-player pending/active drowning timers
- WorldEngine: host runtime (hooks, connection state, time events)
- DrowningConfig: versioned YAML configuration
"""

__version__ = "1.1.0"

PLUGIN_NAME = "nowatersleep"
