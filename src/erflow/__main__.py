import sys

from erflow.cli import main

sys.exit(main())
