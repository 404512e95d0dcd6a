import sys

from loadcompare.cli import main

sys.exit(main())
