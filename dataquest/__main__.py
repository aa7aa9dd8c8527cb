import sys

from dataquest.game import main

sys.exit(main())
