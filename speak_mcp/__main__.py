from speak_mcp.cli import main


raise SystemExit(main())
