"""
Command-line entrypoints: API server and interactive console.
"""
