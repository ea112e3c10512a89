import sys

from batchi.cli import main

sys.exit(main())
