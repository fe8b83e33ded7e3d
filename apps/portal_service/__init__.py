"""Portal service: account sync triggers and admin RPCs."""
