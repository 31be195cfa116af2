"""Allow ``python -m evshop``."""

from evshop.cli import main

raise SystemExit(main())
