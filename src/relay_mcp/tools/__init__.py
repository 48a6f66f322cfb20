"""Built-in tools, discovered by MCPServer.load_tools()"""
