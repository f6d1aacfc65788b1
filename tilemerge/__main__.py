import sys

from tilemerge.main import main

sys.exit(main())
