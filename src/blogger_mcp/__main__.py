from blogger_mcp.cli import main

main()
