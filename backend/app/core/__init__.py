"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Default admin creation on first startup
- db: Database configuration and connection management
- errors: Error taxonomy mapped to HTTP status codes
- security: Password hashing and bearer token signing/verification
"""
