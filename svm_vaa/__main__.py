"""Allow ``python -m svm_vaa``."""

import sys

from svm_vaa.cli import main

sys.exit(main())
