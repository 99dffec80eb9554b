import sys

from ghostwatch.cli import main

sys.exit(main())
