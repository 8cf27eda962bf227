import sys

from reachout.cli import main

sys.exit(main())
