"""Authentication and authorization.

Two steps on every protected request:
1. Authentication → bearer JWT in the Authorization header → CurrentIdentity
2. Authorization → guard.py decides whether that identity may touch the
   requested message or user resource

Passwords are bcrypt hashes (password.py); tokens are HS256 JWTs (jwt.py).
"""
