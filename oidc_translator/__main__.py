import sys

from oidc_translator.cli import main

sys.exit(main())
