import sys

from beatscope.cli import main

sys.exit(main())
