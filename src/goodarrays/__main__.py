from goodarrays.cli import main

raise SystemExit(main())
