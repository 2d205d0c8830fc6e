"""
Core wiring shared by the server and the client: ports (Protocols) and console state.
"""
