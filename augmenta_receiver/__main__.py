from augmenta_receiver.cli import main

raise SystemExit(main())
