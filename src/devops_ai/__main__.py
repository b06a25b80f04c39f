from devops_ai.cli import main

raise SystemExit(main())
