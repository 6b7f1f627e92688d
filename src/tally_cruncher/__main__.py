import sys

from tally_cruncher.cli import main

sys.exit(main())
