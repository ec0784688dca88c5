import sys

from flowrecorder.cli import main

sys.exit(main())
