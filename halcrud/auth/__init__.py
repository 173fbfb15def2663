"""
Bearer-token helpers shared by the auth middleware and API clients.
"""
