import sys

from print_agent.cli import main

sys.exit(main())
