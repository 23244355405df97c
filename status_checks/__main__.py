from status_checks.main import main

raise SystemExit(main())
