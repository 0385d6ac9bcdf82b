from user_lookup.cli import main

raise SystemExit(main())
