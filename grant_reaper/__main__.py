import sys

from grant_reaper.main import main

sys.exit(main())
