import sys

from botmanager.app import main

sys.exit(main())
