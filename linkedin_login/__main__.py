import sys

from linkedin_login.cli import main

sys.exit(main())
