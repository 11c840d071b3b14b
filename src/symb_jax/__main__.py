from .cmdline import main

raise SystemExit(main())
