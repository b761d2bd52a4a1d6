from aixbt_mcp.stdio import main

main()
