"""HTTP routers for the out-of-band query surface."""
