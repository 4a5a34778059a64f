import sys

from enrollment_core.cli import main

sys.exit(main())
