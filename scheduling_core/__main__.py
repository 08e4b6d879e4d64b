import sys

from scheduling_core.cli import main

sys.exit(main())
