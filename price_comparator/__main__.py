import sys

from price_comparator.cli import main

sys.exit(main())
