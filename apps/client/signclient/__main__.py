import sys

from signclient.cli import main

sys.exit(main())
