import sys

from txn_fetch.cli import main

sys.exit(main())
