"""Allow `python -m edgesched` to launch the scheduler."""

import sys

from edgesched.main import cli

sys.exit(cli())
