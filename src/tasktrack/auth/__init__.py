"""Authentication: password hashing, session tokens, and the request guard.

Users → email/password → signed session token (JWT), recorded server-side.
Every protected request presents the token; the guard checks the signature
AND that the token is still in the user's live sessions, so logout works.
"""
