"""falcon-linux-installer.

Downloads, installs and registers the CrowdStrike Falcon sensor on Linux.
"""

__version__ = "1.4.1"
