"""
ipctl: command line administration for the platform.

Manage assets, drive lifecycle operations, call the HTTP API directly,
move assets through git repositories and administer the local
authentication plugin.
"""

import os

__version__ = "0.1.0"

APP_NAME = "ipctl"

# Stamped by the release build; empty on development installs.
BUILD = os.environ.get("IPCTL_BUILD", "")
