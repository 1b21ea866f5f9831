"""Sessions, sign-in against the backend auth service, and the admin session gate."""
