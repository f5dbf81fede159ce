import sys

from sheets_mcp.main import main

sys.exit(main())
