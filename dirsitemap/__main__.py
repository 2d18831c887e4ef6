from dirsitemap.run import main

raise SystemExit(main())
