import sys

from location_seed.cli.ingest_cli import main

sys.exit(main())
