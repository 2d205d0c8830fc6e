"""
Client side: async REST client and the optimistic SyncController built on it.
"""
