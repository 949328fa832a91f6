from floodshape.cli import main

raise SystemExit(main())
