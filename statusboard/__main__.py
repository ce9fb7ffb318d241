import sys

from statusboard.cli import main

sys.exit(main())
