import sys

from .sapwood.main import main

sys.exit(main())
