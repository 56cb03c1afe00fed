import sys

from cardroom.server.main import main

sys.exit(main())
