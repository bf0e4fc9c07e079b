"""
auth — Credentials and bearer tokens.

Provides:
  • Password hashing (bcrypt, salted, configurable cost)
  • Signed ``userId`` token issue & verification
  • ``get_current_user_id`` FastAPI dependency
"""
