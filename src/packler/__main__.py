from packler.cli import main

raise SystemExit(main())
